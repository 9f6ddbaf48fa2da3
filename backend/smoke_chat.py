#!/usr/bin/env python3
"""
Smoke script: exercises every chat API endpoint against a running backend.

API endpoints:
- GET  /api/models/        → catalog sorted by name
- GET  /api/chat/history   → user's messages, oldest first
- POST /api/chat/send      → user turn + assistant turn, {"success": true}

Run with backend server up (e.g. uvicorn modelchat.main:app --reload) and a seeded
catalog (python -m modelchat.seed). Base URL comes from CHAT_API_BASE.
"""
import os
import sys
import uuid

import httpx

BASE_URL = os.environ.get("CHAT_API_BASE", "http://localhost:8000").rstrip("/")

FAILED = []


def ok(name: str, resp: httpx.Response, want_status: int | None = None) -> bool:
    if want_status is not None and resp.status_code != want_status:
        print(f"  FAIL {name}: got status {resp.status_code}, want {want_status}")
        FAILED.append(name)
        return False
    if resp.is_error and want_status is None:
        print(f"  FAIL {name}: status {resp.status_code} -> {resp.text[:200]}")
        FAILED.append(name)
        return False
    print(f"  OK   {name}")
    return True


def main() -> None:
    # Fresh user so history starts empty
    user_id = f"smoke-{uuid.uuid4().hex[:8]}"
    client = httpx.Client(base_url=BASE_URL, timeout=60.0)

    print("\nChat API smoke test")
    print("=" * 50)

    print("\n1. GET /api/models/")
    r = client.get("/api/models/")
    if not ok("GET models", r, 200):
        sys.exit(1)
    models = r.json()["models"]
    print(f"     -> {len(models)} models: {[m['tag'] for m in models]}")
    if not models:
        print("  Catalog is empty; run python -m modelchat.seed first.", file=sys.stderr)
        sys.exit(1)

    print(f"\n2. GET /api/chat/history (new user {user_id})")
    r = client.get("/api/chat/history", params={"user_id": user_id})
    if ok("GET history empty", r, 200) and r.json()["messages"]:
        print("  FAIL GET history empty: expected no messages")
        FAILED.append("GET history empty")

    tag = models[0]["tag"]
    print(f"\n3. POST /api/chat/send (model {tag})")
    r = client.post("/api/chat/send", json={"user_id": user_id, "model_tag": tag, "prompt": "Hello"})
    ok("POST send", r, 200)

    print("\n4. GET /api/chat/history (after send)")
    r = client.get("/api/chat/history", params={"user_id": user_id})
    if ok("GET history", r, 200):
        messages = r.json()["messages"]
        roles = [m["role"] for m in messages]
        print(f"     -> roles={roles}")
        if roles != ["user", "assistant"]:
            print("  FAIL GET history: expected one user and one assistant message")
            FAILED.append("GET history roles")
        else:
            print(f"     -> reply: {messages[1]['content'][:120]}")

    print("\n5. POST /api/chat/send (unknown model -> 404)")
    r = client.post(
        "/api/chat/send",
        json={"user_id": user_id, "model_tag": "nonexistent-tag", "prompt": "hi"},
    )
    ok("POST send unknown model", r, 404)

    print("\n6. POST /api/chat/send (blank prompt -> 422)")
    r = client.post("/api/chat/send", json={"user_id": user_id, "model_tag": tag, "prompt": "  "})
    ok("POST send blank prompt", r, 422)

    client.close()

    # --- Summary ---
    print("\n" + "=" * 50)
    if FAILED:
        print(f"FAILED: {len(FAILED)} check(s) -> {FAILED}")
        sys.exit(1)
    print("All API checks passed.")
    sys.exit(0)


if __name__ == "__main__":
    main()
