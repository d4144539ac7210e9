#!/usr/bin/env python3
"""Smoke test a running server: random-name upload, keep-name upload + collision."""
import argparse
import os
import sys
import json
import re
import uuid
from typing import Any

import requests

SERVER = os.getenv("SERVER_URL", "http://localhost:8080")
UPLOAD_ROUTE = os.getenv("UPLOAD_ROUTE", "/upload")


def jprint(label: str, obj: Any):
    print(f"{label}: {json.dumps(obj, ensure_ascii=False)}")


def upload(filename: str, content: bytes, keep_name: bool = False) -> requests.Response:
    return requests.post(
        f"{SERVER}{UPLOAD_ROUTE}",
        params={"keep_name": str(keep_name).lower()},
        files={"file": (filename, content)},
        timeout=30,
    )


def must(cond: bool, label: str):
    if not cond:
        print(f"FAIL: {label}")
        sys.exit(1)
    print(f"ok: {label}")


def main() -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--skip-keep-name", action="store_true")
    args = ap.parse_args()

    r = requests.get(f"{SERVER}/status", timeout=10)
    r.raise_for_status()
    jprint("status", r.json())

    r = upload("smoke.txt", b"hello")
    must(r.status_code == 200, f"random upload -> {r.status_code} {r.text}")
    must(re.fullmatch(r"[A-Za-z0-9]+\.txt", r.text) is not None, f"name {r.text!r}")

    r = upload("noext", b"x")
    must(r.status_code == 400, f"missing extension -> {r.status_code}")

    if not args.skip_keep_name:
        name = f"smoke-{uuid.uuid4().hex[:8]}.txt"
        r = upload(name, b"first", keep_name=True)
        must(r.status_code == 200 and r.text == name, f"keep_name upload -> {r.text}")
        r = upload(name, b"second", keep_name=True)
        must(r.status_code == 409, f"keep_name collision -> {r.status_code}")

    print("smoke_upload: all checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
