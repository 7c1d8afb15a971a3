"""
Load test for the judging API.
Simulates a room full of judges submitting score sheets at once.

Needs a running server and an admin or moderator token (admins may submit
for any judge profile):

    JUDGE_API_TOKEN=... EVENT_ID=1 python load_test_scores.py
"""

import asyncio
import os
import random
import time
import aiohttp

# -----------------------------
# CONFIG - ADJUST IF NEEDED
# -----------------------------
BASE_URL = os.getenv("JUDGE_API_URL", "http://127.0.0.1:5001")
TOKEN = os.getenv("JUDGE_API_TOKEN", "")
EVENT_ID = int(os.getenv("EVENT_ID", "1"))

# Total POST requests to send
TOTAL_REQUESTS = int(os.getenv("TOTAL_REQUESTS", "2000"))

# How many run simultaneously
MAX_CONCURRENT = int(os.getenv("MAX_CONCURRENT", "150"))


def _headers():
    return {"Authorization": f"Bearer {TOKEN}"}


# -----------------------------
# Load test functions
# -----------------------------
async def fetch_context(session):
    """Team ids, judge profile ids and criteria for the event under test."""
    async with session.get(f"{BASE_URL}/events/{EVENT_ID}/teams", headers=_headers()) as resp:
        resp.raise_for_status()
        teams = [t["id"] for t in (await resp.json())["teams"]]

    async with session.get(f"{BASE_URL}/events/{EVENT_ID}/judges", headers=_headers()) as resp:
        resp.raise_for_status()
        judges = [j["id"] for j in (await resp.json())["judges"]]

    async with session.get(f"{BASE_URL}/rubric", headers=_headers()) as resp:
        resp.raise_for_status()
        criteria = [(c["id"], c["max_score"]) for c in (await resp.json())["criteria"]]

    return teams, judges, criteria


async def submit_scores(session, judge_id, team_id, criteria):
    payload = {
        "eventId": EVENT_ID,
        "teamId": team_id,
        "judgeId": judge_id,
        "scores": [
            {"criterionId": cid, "score": random.randint(0, max_score)}
            for cid, max_score in criteria
        ],
        "overallComment": "load test",
        "timeSpentSeconds": random.randint(30, 900),
    }

    try:
        async with session.post(f"{BASE_URL}/scores", json=payload, headers=_headers()) as resp:
            text = await resp.text()
            if resp.status != 200:
                print(f"[ERROR {resp.status}] judge={judge_id} team={team_id} :: {text[:200]}")
            return resp.status
    except aiohttp.ClientError as e:
        print(f"[EXCEPTION] {e} :: judge={judge_id} team={team_id}")
        return None


async def worker(name, session, task_queue, criteria, results):
    while True:
        item = await task_queue.get()
        if item is None:
            task_queue.task_done()
            break

        judge_id, team_id = item
        results.append(await submit_scores(session, judge_id, team_id, criteria))
        task_queue.task_done()


async def main():
    if not TOKEN:
        raise SystemExit("Set JUDGE_API_TOKEN to an admin or moderator bearer token")

    task_queue = asyncio.Queue()
    results = []

    async with aiohttp.ClientSession() as session:
        teams, judges, criteria = await fetch_context(session)
        if not teams or not judges:
            raise SystemExit(f"Event {EVENT_ID} needs at least one team and one judge profile")

        # Generate all simulated requests; repeats exercise resubmission
        for _ in range(TOTAL_REQUESTS):
            await task_queue.put((random.choice(judges), random.choice(teams)))

        # Add sentinel None tasks to close workers
        for _ in range(MAX_CONCURRENT):
            await task_queue.put(None)

        workers = [
            asyncio.create_task(worker(f"worker-{i}", session, task_queue, criteria, results))
            for i in range(MAX_CONCURRENT)
        ]

        print(f"Sending {TOTAL_REQUESTS} submissions with concurrency {MAX_CONCURRENT}...")
        start = time.time()

        await task_queue.join()
        end = time.time()

        for w in workers:
            await w

        ok = sum(1 for r in results if r == 200)
        print(f"Completed in {end - start:.2f} seconds ({ok}/{len(results)} OK)")


if __name__ == "__main__":
    asyncio.run(main())
