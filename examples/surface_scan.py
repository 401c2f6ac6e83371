"""Example script that starts a surface scan through the control server and
fetches the results once the operator has finished the job on the machine."""
from __future__ import annotations

import requests

SERVER = "http://localhost:8000"


def main() -> None:
    payload = {"startX": 0.0, "startY": 0.0, "endX": 2.0, "endY": 1.0, "spacing": 0.25}
    res = requests.post(f"{SERVER}/api/scan/surface", json=payload, timeout=10)
    res.raise_for_status()
    print(res.json())

    input("Run the job on the machine, then press Enter to retrieve the data...")
    res = requests.post(f"{SERVER}/api/retrieve/surface", timeout=10)
    res.raise_for_status()
    body = res.json()
    if body["status"] != "ok":
        print(f"No data: {body['status']} ({body.get('reason')})")
        return
    print(body["summary"])


if __name__ == "__main__":
    main()
