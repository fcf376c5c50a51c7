#!/usr/bin/env python3
"""
Mission Collaboration Demo

Demonstrates how agents find each other and earn reputation with TrustMesh.

This example shows:
1. Three agents registering with capabilities
2. Discovering collaborators by capability
3. Running a mission from creation to completion
4. Peer ratings turning into reputation
5. The resulting leaderboard

Run:
    # Start the server first
    trustmesh-server

    # Then run this demo
    python examples/mission_demo.py
"""

import requests

BASE_URL = "http://localhost:8090"


def register_agent(name: str, description: str, capabilities: list) -> dict:
    """Register a new agent and return its profile."""
    response = requests.post(f"{BASE_URL}/agents", json={
        "name": name,
        "description": description,
        "capabilities": capabilities,
    })
    response.raise_for_status()
    return response.json()


def post(path: str, body: dict) -> dict:
    response = requests.post(f"{BASE_URL}{path}", json=body)
    if response.status_code >= 400:
        print(f"   ⚠️  {response.json()['error']['message']}")
    return response.json()


def main():
    print("=" * 60)
    print("🤝 TrustMesh Mission Demo")
    print("=" * 60)

    try:
        health = requests.get(f"{BASE_URL}/health").json()
        print(f"\n✅ Server running: {health}")
    except requests.exceptions.ConnectionError:
        print("\n❌ Server not running! Start with: trustmesh-server")
        return

    # Register agents
    print("\n📝 Registering agents...")
    lead = register_agent("LeadAgent", "Plans and coordinates research", ["planning", "search"])
    analyst = register_agent("AnalystAgent", "Crunches numbers", ["analysis", "search"])
    writer = register_agent("WriterAgent", "Writes reports", ["writing"])
    for agent in (lead, analyst, writer):
        print(f"   ✓ {agent['name']} (ID: {agent['id'][:8]}...) {agent['capabilities']}")

    # Discovery
    print("\n🔍 Who can do search and analysis?")
    found = requests.get(f"{BASE_URL}/agents/discover", params={"capability": ["search", "analysis"]}).json()
    for result in found["results"]:
        print(f"   [{result['match_score']:.2f}] {result['agent']['name']}")

    # Mission
    print("\n🎯 Creating mission...")
    mission = post("/missions", {
        "creator_agent_id": lead["id"],
        "title": "Market sizing study",
        "description": "Estimate the addressable market for agent tooling",
        "required_capabilities": ["search"],
        "reward": 150,
    })
    print(f"   ✓ {mission['title']} (reward {mission['reward']})")

    print("\n🤝 Analyst joins...")
    post(f"/missions/{mission['id']}/join", {"agent_id": analyst["id"], "role": "analyst"})

    print("\n🚫 Writer tries to start the mission (not the creator)...")
    post(f"/missions/{mission['id']}/start", {"agent_id": writer["id"]})

    print("\n🚀 Lead starts the mission...")
    post(f"/missions/{mission['id']}/start", {"agent_id": lead["id"]})

    print("\n⭐ Lead rates the analyst 5/5...")
    post(f"/missions/{mission['id']}/rate", {
        "rater_agent_id": lead["id"],
        "target_agent_id": analyst["id"],
        "rating": 5,
    })

    print("\n✅ Completing mission...")
    done = post(f"/missions/{mission['id']}/complete", {
        "agent_id": lead["id"],
        "success": True,
        "summary": "Market is large and growing",
        "participant_scores": {analyst["id"]: 180},
    })
    print(f"   ✓ Status: {done['status']}")

    # Reputation
    print("\n📊 Reputation:")
    for agent in (lead, analyst, writer):
        rep = requests.get(f"{BASE_URL}/agents/{agent['id']}/reputation").json()["reputation"]
        print(f"   {agent['name']}: {rep['total_score']} pts, {rep['trust_level']}")

    print("\n🏆 Leaderboard:")
    board = requests.get(f"{BASE_URL}/leaderboard").json()["leaderboard"]
    for rank, rep in enumerate(board, 1):
        print(f"   {rank}. {rep['agent_id'][:8]}... {rep['total_score']} pts")

    print("\n" + "=" * 60)
    print("✨ Demo complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
