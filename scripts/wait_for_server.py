import sys
import time

import requests

SERVER_URL = "http://127.0.0.1:8787"
MAX_RETRIES = 30
DELAY = 1


def check_server(url: str = SERVER_URL) -> bool:
    try:
        response = requests.get(f"{url}/health", timeout=1)
        if response.status_code == 200:
            print(f"Retain server is ready! Version: {response.json().get('version')}")
            return True
    except requests.exceptions.RequestException:
        pass
    return False


def main():
    url = sys.argv[1] if len(sys.argv) > 1 else SERVER_URL
    print(f"Waiting for retain server at {url}...")
    for i in range(MAX_RETRIES):
        if check_server(url):
            sys.exit(0)
        time.sleep(DELAY)
        print(f"Retry {i + 1}/{MAX_RETRIES}...")

    print("Timed out waiting for retain server.")
    sys.exit(1)


if __name__ == "__main__":
    main()
