# example.py
# A small example showing how to use the login_finder library to crawl a
# site and list the login pages it found, grouped by host.

import asyncio
import logging

from login_finder import ReportWriteError, find_login_pages

# --- Configuration ---
# Enable logging to see which URLs are processed and which pages match.
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# The site you want to survey. Only pages under the same registrable domain
# are crawled.
TARGET_URL = "https://example.com/"


async def main():
    """
    Run the crawl in static mode and print every host's login pages.
    """
    print(f"[*] Looking for login pages from: {TARGET_URL}\n")

    try:
        # One call does everything: crawl, classify each page, wait for the
        # outstanding detections and write results/<host>_<timestamp>.json.
        summary = await find_login_pages(TARGET_URL, max_depth=2)
    except ReportWriteError as e:
        print(f"\n[!] Could not save the results: {e}")
        return

    print("\n--- CRAWL COMPLETE ---")
    for host, result in sorted(summary.results.items()):
        print(f"{host}: {result.count} page(s) seen")
        for i, url in enumerate(result.login_urls):
            prefix = "└──" if i == len(result.login_urls) - 1 else "├──"
            print(f"{prefix} {url}")

    if not summary.login_urls:
        print("\nNo login pages were found.")
    print(f"\nReport: {summary.report_path}")


if __name__ == "__main__":
    # The library is async, so we use asyncio.run() to start it.
    asyncio.run(main())
