"""
Smoke client for a running Smart Event Scheduler server
"""
import json
import logging
import time
from typing import Any, Dict

import requests


class SmartCalendarSmokeClient:
    """Drives the sheet + suggestion flow over HTTP"""

    def __init__(self, base_url: str = "http://localhost:5000", timeout: float = 35):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def _call(self, method: str, path: str, payload: Dict[str, Any] = None) -> Dict[str, Any]:
        try:
            start_time = time.time()
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                timeout=self.timeout,
                headers={'Content-Type': 'application/json'}
            )
            response_time = time.time() - start_time
            body = response.json() if response.content else {}
            self.logger.info(f"{method} {path} -> {response.status_code} (RT: {response_time:.2f}s)")
            return {
                "ok": response.ok,
                "status_code": response.status_code,
                "data": body,
                "response_time": response_time,
            }
        except requests.exceptions.Timeout:
            self.logger.error(f"{method} {path} timed out")
            return {"ok": False, "error": "timeout"}
        except (requests.exceptions.RequestException, ValueError) as e:
            self.logger.error(f"{method} {path} failed: {e}")
            return {"ok": False, "error": str(e)}

    def check_health(self) -> bool:
        return self._call("GET", "/health").get("ok", False)

    def check_suggestion_flow(self) -> Dict[str, Any]:
        """Open a sheet, ask for a suggestion, apply it and save the event"""
        opened = self._call("POST", "/sheets", {})
        if not opened.get("ok"):
            return {"success": False, "step": "open", "detail": opened}
        sheet_id = opened["data"]["sheet_id"]

        self._call("PATCH", f"/sheets/{sheet_id}", {
            "title": "Smoke Test Event",
            "duration": 45,
            "preferences": "I prefer mornings",
        })

        suggested = self._call("POST", f"/sheets/{sheet_id}/suggest?wait=true")
        form = suggested.get("data", {}).get("form") or {}
        if not form.get("suggestion"):
            self._call("DELETE", f"/sheets/{sheet_id}")
            return {"success": False, "step": "suggest", "detail": suggested}

        applied = self._call("POST", f"/sheets/{sheet_id}/apply")
        if not applied.get("ok"):
            return {"success": False, "step": "apply", "detail": applied}

        submitted = self._call("POST", f"/sheets/{sheet_id}/submit")
        return {"success": submitted.get("status_code") == 201, "step": "submit", "detail": submitted}

    def check_invalid_duration(self) -> bool:
        """A zero duration must be rejected without calling the model"""
        result = self._call("POST", "/suggestions", {"duration": 0})
        data = result.get("data", {})
        return result.get("ok", False) and data.get("success") is False

    def run_smoke_suite(self) -> Dict[str, Any]:
        """Run all smoke checks"""
        results = {
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "checks": {},
            "summary": {"total": 0, "passed": 0, "failed": 0},
        }

        checks = {
            "health": self.check_health,
            "invalid_duration": self.check_invalid_duration,
            "suggestion_flow": lambda: self.check_suggestion_flow()["success"],
        }

        for name, check in checks.items():
            passed = bool(check())
            results["checks"][name] = passed
            results["summary"]["total"] += 1
            results["summary"]["passed" if passed else "failed"] += 1
            self.logger.info(f"{'✓' if passed else '✗'} {name}")

        return results


def main():
    """Smoke client entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Smart Event Scheduler Smoke Client')
    parser.add_argument('--url', default='http://localhost:5000', help='API base URL')
    parser.add_argument('--output', help='Output file for results')
    parser.add_argument('--verbose', action='store_true', help='Verbose logging')

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format='%(asctime)s - %(levelname)s - %(message)s')

    client = SmartCalendarSmokeClient(args.url)
    print(f"Running smoke checks against {args.url}")
    results = client.run_smoke_suite()

    summary = results["summary"]
    print(f"\nSmoke Results:")
    print(f"  Total checks: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"\nDetailed results saved to: {args.output}")


if __name__ == '__main__':
    main()
