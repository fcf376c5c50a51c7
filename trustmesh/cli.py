#!/usr/bin/env python3
"""
TrustMesh CLI

Command-line interface for a running TrustMesh API server.

Usage:
    trustmesh register Scout "Finds papers" -c search summarize
    trustmesh discover search --min-trust bronze
    trustmesh create-mission <creator-id> "Literature review" -c search --reward 150
    trustmesh complete <mission-id> <agent-id> --success --score <agent-id>=180
    trustmesh leaderboard
"""

import argparse
import json
import os
import sys

import requests

TRUST_ICONS = {
    "unverified": "⚪",
    "bronze": "🥉",
    "silver": "🥈",
    "gold": "🥇",
    "diamond": "💎",
}

STATUS_ICONS = {
    "open": "🟢",
    "in_progress": "🟡",
    "completed": "✅",
    "failed": "❌",
    "cancelled": "⛔",
}


class TrustMeshCLI:
    """CLI client for the TrustMesh API."""

    def __init__(self, base_url: str = None):
        self.base_url = (base_url or os.environ.get("TRUSTMESH_URL", "http://localhost:8090")).rstrip("/")

    def _request(self, method: str, endpoint: str, **kwargs):
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.request(
                method, url, headers={"Content-Type": "application/json"}, timeout=30, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.ConnectionError:
            print(f"❌ Cannot connect to TrustMesh at {self.base_url}", file=sys.stderr)
            print("   Is the server running? Start it with: trustmesh-server", file=sys.stderr)
            sys.exit(1)
        except requests.exceptions.HTTPError as e:
            print(f"❌ {self._error_message(e.response)}", file=sys.stderr)
            sys.exit(1)

    @staticmethod
    def _error_message(response) -> str:
        try:
            error = response.json().get("error", {})
            return f"{error['kind']}: {error['message']}"
        except (ValueError, KeyError, TypeError, AttributeError):
            return f"API error: {response.status_code} {response.text}"

    @staticmethod
    def _print_json(result):
        print(json.dumps(result, indent=2, default=str))

    # ==================== Agents ====================

    def register(
        self,
        name: str,
        description: str,
        capabilities: list = None,
        wallet_address: str = None,
        endpoint: str = None,
        json_output: bool = False,
    ):
        """Register a new agent."""
        result = self._request("POST", "/agents", json={
            "name": name,
            "description": description,
            "capabilities": capabilities or [],
            "wallet_address": wallet_address,
            "endpoint": endpoint,
        })

        if json_output:
            self._print_json(result)
            return

        print(f"✅ Agent registered: {result['name']} (ID: {result['id']})")
        if result.get("capabilities"):
            print(f"   Capabilities: {', '.join(result['capabilities'])}")

    def agents(self, online_only: bool = False, json_output: bool = False):
        """List registered agents."""
        params = {"online_only": "true"} if online_only else {}
        result = self._request("GET", "/agents", params=params)
        agents = result.get("agents", [])

        if json_output:
            self._print_json(agents)
            return

        if not agents:
            print("📋 No agents registered yet")
            return

        print(f"\n🤖 Registered Agents ({len(agents)} total)\n")
        for agent in agents:
            print(f"  • {agent['name']} ({agent['id'][:8]}...)")
            if agent.get("description"):
                print(f"      {agent['description']}")
            if agent.get("capabilities"):
                print(f"      Capabilities: {', '.join(agent['capabilities'])}")

    def discover(
        self,
        capabilities: list = None,
        min_trust: str = None,
        max_results: int = 10,
        json_output: bool = False,
    ):
        """Discover agents ranked by match score."""
        params = {"max_results": max_results}
        if capabilities:
            params["capability"] = capabilities
        if min_trust:
            params["min_trust_level"] = min_trust

        result = self._request("GET", "/agents/discover", params=params)
        results = result.get("results", [])

        if json_output:
            self._print_json(results)
            return

        if not results:
            print("📋 No matching agents found")
            return

        print(f"\n🔍 Found {len(results)} agent(s)\n")
        for item in results:
            agent = item["agent"]
            reputation = item["reputation"]
            icon = TRUST_ICONS.get(reputation["trust_level"], "⚪")
            print(f"  [{item['match_score']:.2f}] {icon} {agent['name']} ({agent['id'][:8]}...)"
                  f" - {reputation['total_score']} pts")

    # ==================== Reputation ====================

    def reputation(self, agent_id: str, json_output: bool = False):
        """Show an agent's reputation and recent history."""
        result = self._request("GET", f"/agents/{agent_id}/reputation")

        if json_output:
            self._print_json(result)
            return

        rep = result["reputation"]
        icon = TRUST_ICONS.get(rep["trust_level"], "⚪")
        print(f"\n{icon} {agent_id}: {rep['trust_level']}")
        print(f"   Score: {rep['total_score']}")
        print(f"   Missions: {rep['completed_missions']}")
        print(f"   Avg quality: {rep['avg_quality']:.1f}")

        history = result.get("history", [])
        if history:
            print(f"\n   Recent events ({len(history)}):")
            for event in history:
                ts = event.get("timestamp", "")[:16].replace("T", " ")
                print(f"   [{ts}] {event['score']:+d} {event['category']} ({event['mission_id'][:8]}...)")

    def leaderboard(self, limit: int = 10, json_output: bool = False):
        """Show the reputation leaderboard."""
        result = self._request("GET", "/leaderboard", params={"limit": limit})
        entries = result.get("leaderboard", [])

        if json_output:
            self._print_json(entries)
            return

        if not entries:
            print("📋 No reputation recorded yet")
            return

        print(f"\n🏆 Leaderboard\n")
        for rank, rep in enumerate(entries, 1):
            icon = TRUST_ICONS.get(rep["trust_level"], "⚪")
            print(f"  {rank:>2}. {icon} {rep['agent_id'][:12]:<12} {rep['total_score']:>6} pts"
                  f"  ({rep['completed_missions']} missions)")

    def verify(self, agent_id: str, min_level: str, json_output: bool = False):
        """Check an agent against a minimum trust level."""
        result = self._request("GET", f"/agents/{agent_id}/trust", params={"min_level": min_level})

        if json_output:
            self._print_json(result)
            return

        current = result["current_reputation"]["trust_level"]
        if result["verified"]:
            print(f"✅ {agent_id} meets {min_level} (currently {current})")
        else:
            print(f"❌ {agent_id} does not meet {min_level} (currently {current})")

    # ==================== Missions ====================

    def missions(self, agent_id: str = None, active_only: bool = False, json_output: bool = False):
        """List missions."""
        params = {"active_only": str(active_only).lower()}
        if agent_id:
            params["agent_id"] = agent_id
        result = self._request("GET", "/missions", params=params)
        missions = result.get("missions", [])

        if json_output:
            self._print_json(missions)
            return

        if not missions:
            print("📋 No missions found")
            return

        print(f"\n🎯 Missions ({len(missions)})\n")
        for mission in missions:
            self._print_mission_line(mission)

    def create_mission(
        self,
        creator_id: str,
        title: str,
        description: str = "",
        capabilities: list = None,
        min_trust: str = "unverified",
        reward: int = None,
        json_output: bool = False,
    ):
        """Create a mission."""
        result = self._request("POST", "/missions", json={
            "creator_agent_id": creator_id,
            "title": title,
            "description": description,
            "required_capabilities": capabilities or [],
            "min_trust_level": min_trust,
            "reward": reward,
        })

        if json_output:
            self._print_json(result)
            return

        print(f"✅ Mission created: {result['title']} (ID: {result['id']})")
        print(f"   Reward: {result['reward']} pts, min trust: {result['min_trust_level']}")

    def join(self, mission_id: str, agent_id: str, role: str, json_output: bool = False):
        result = self._request("POST", f"/missions/{mission_id}/join", json={"agent_id": agent_id, "role": role})
        if json_output:
            self._print_json(result)
            return
        print(f"🤝 {agent_id[:8]}... joined '{result['title']}' as {role}")

    def start(self, mission_id: str, agent_id: str, json_output: bool = False):
        result = self._request("POST", f"/missions/{mission_id}/start", json={"agent_id": agent_id})
        if json_output:
            self._print_json(result)
            return
        print(f"🚀 Mission '{result['title']}' started")

    def complete(
        self,
        mission_id: str,
        agent_id: str,
        success: bool,
        summary: str = "",
        scores: dict = None,
        json_output: bool = False,
    ):
        result = self._request("POST", f"/missions/{mission_id}/complete", json={
            "agent_id": agent_id,
            "success": success,
            "summary": summary,
            "participant_scores": scores or {},
        })
        if json_output:
            self._print_json(result)
            return
        icon = STATUS_ICONS.get(result["status"], "○")
        print(f"{icon} Mission '{result['title']}' {result['status']}")

    def rate(self, mission_id: str, rater_id: str, target_id: str, rating: int):
        self._request("POST", f"/missions/{mission_id}/rate", json={
            "rater_agent_id": rater_id,
            "target_agent_id": target_id,
            "rating": rating,
        })
        print(f"⭐ Rated {target_id[:8]}... {rating}/5")

    def status(self):
        """Check server status."""
        result = self._request("GET", "/health")
        print(f"✅ TrustMesh server is healthy at {self.base_url}")
        print(f"   Version: {result.get('version', '?')}")
        print(f"   Agents: {result.get('agents', 0)}")
        print(f"   Active missions: {result.get('active_missions', 0)}")

    @staticmethod
    def _print_mission_line(mission: dict):
        icon = STATUS_ICONS.get(mission["status"], "○")
        caps = ", ".join(mission.get("required_capabilities", [])) or "any"
        print(f"  {icon} {mission['title']} ({mission['id'][:8]}...)")
        print(f"      {mission['reward']} pts | min {mission['min_trust_level']} | needs: {caps}"
              f" | {len(mission.get('participants', []))} participant(s)")


def parse_scores(pairs: list) -> dict:
    """Parse ["agent=150", ...] into {"agent": 150}."""
    scores = {}
    for pair in pairs or []:
        agent_id, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Expected AGENT_ID=SCORE, got {pair!r}")
        try:
            scores[agent_id] = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Score for {agent_id} must be an integer, got {value!r}")
    return scores


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TrustMesh CLI - Reputation, discovery and missions for AI agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    trustmesh status                                  # Check server status
    trustmesh register Scout "Finds papers" -c search # Register an agent
    trustmesh discover search summarize               # Rank agents by capability
    trustmesh missions --active                       # List active missions
    trustmesh leaderboard --limit 5                   # Top agents

Environment Variables:
    TRUSTMESH_URL      API server URL (default: http://localhost:8090)
"""
    )

    parser.add_argument("--url", help="TrustMesh server URL")
    parser.add_argument("--json", action="store_true", help="Output as JSON")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("status", help="Check server status")

    register_parser = subparsers.add_parser("register", help="Register a new agent")
    register_parser.add_argument("name", help="Agent name")
    register_parser.add_argument("description", help="What the agent does")
    register_parser.add_argument("--capabilities", "-c", nargs="*", help="Capabilities")
    register_parser.add_argument("--wallet", help="Wallet address")
    register_parser.add_argument("--endpoint", "-e", help="Endpoint URL")

    agents_parser = subparsers.add_parser("agents", help="List registered agents")
    agents_parser.add_argument("--online", action="store_true", help="Only show online agents")

    discover_parser = subparsers.add_parser("discover", help="Find agents by capability")
    discover_parser.add_argument("capabilities", nargs="*", help="Required capabilities")
    discover_parser.add_argument("--min-trust", help="Minimum trust level")
    discover_parser.add_argument("--limit", type=int, default=10, help="Maximum results")

    reputation_parser = subparsers.add_parser("reputation", help="Show an agent's reputation")
    reputation_parser.add_argument("agent_id", help="Agent ID")

    leaderboard_parser = subparsers.add_parser("leaderboard", help="Reputation leaderboard")
    leaderboard_parser.add_argument("--limit", type=int, default=10, help="Number of agents")

    verify_parser = subparsers.add_parser("verify", help="Check an agent's trust level")
    verify_parser.add_argument("agent_id", help="Agent ID")
    verify_parser.add_argument("min_level", help="Minimum trust level")

    missions_parser = subparsers.add_parser("missions", help="List missions")
    missions_parser.add_argument("--agent", help="Only missions this agent takes part in")
    missions_parser.add_argument("--active", action="store_true", help="Only open or in-progress missions")

    create_parser = subparsers.add_parser("create-mission", help="Create a mission")
    create_parser.add_argument("creator_id", help="Creator agent ID")
    create_parser.add_argument("title", help="Mission title")
    create_parser.add_argument("--description", "-d", default="", help="Description")
    create_parser.add_argument("--capabilities", "-c", nargs="*", help="Required capabilities")
    create_parser.add_argument("--min-trust", default="unverified", help="Minimum trust level")
    create_parser.add_argument("--reward", type=int, help="Reputation reward")

    join_parser = subparsers.add_parser("join", help="Join a mission")
    join_parser.add_argument("mission_id")
    join_parser.add_argument("agent_id")
    join_parser.add_argument("--role", default="contributor")

    start_parser = subparsers.add_parser("start", help="Start a mission")
    start_parser.add_argument("mission_id")
    start_parser.add_argument("agent_id")

    complete_parser = subparsers.add_parser("complete", help="Complete a mission")
    complete_parser.add_argument("mission_id")
    complete_parser.add_argument("agent_id")
    outcome = complete_parser.add_mutually_exclusive_group(required=True)
    outcome.add_argument("--success", dest="success", action="store_true")
    outcome.add_argument("--failure", dest="success", action="store_false")
    complete_parser.add_argument("--summary", default="")
    complete_parser.add_argument("--score", action="append", help="AGENT_ID=SCORE override")

    rate_parser = subparsers.add_parser("rate", help="Rate a mission participant")
    rate_parser.add_argument("mission_id")
    rate_parser.add_argument("rater_id")
    rate_parser.add_argument("target_id")
    rate_parser.add_argument("rating", type=int)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    cli = TrustMeshCLI(base_url=args.url)

    if args.command == "status":
        cli.status()
    elif args.command == "register":
        cli.register(
            args.name,
            args.description,
            capabilities=args.capabilities,
            wallet_address=args.wallet,
            endpoint=args.endpoint,
            json_output=args.json,
        )
    elif args.command == "agents":
        cli.agents(online_only=args.online, json_output=args.json)
    elif args.command == "discover":
        cli.discover(args.capabilities, min_trust=args.min_trust, max_results=args.limit, json_output=args.json)
    elif args.command == "reputation":
        cli.reputation(args.agent_id, json_output=args.json)
    elif args.command == "leaderboard":
        cli.leaderboard(limit=args.limit, json_output=args.json)
    elif args.command == "verify":
        cli.verify(args.agent_id, args.min_level, json_output=args.json)
    elif args.command == "missions":
        cli.missions(agent_id=args.agent, active_only=args.active, json_output=args.json)
    elif args.command == "create-mission":
        cli.create_mission(
            args.creator_id,
            args.title,
            description=args.description,
            capabilities=args.capabilities,
            min_trust=args.min_trust,
            reward=args.reward,
            json_output=args.json,
        )
    elif args.command == "join":
        cli.join(args.mission_id, args.agent_id, args.role, json_output=args.json)
    elif args.command == "start":
        cli.start(args.mission_id, args.agent_id, json_output=args.json)
    elif args.command == "complete":
        try:
            scores = parse_scores(args.score)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))
        cli.complete(
            args.mission_id,
            args.agent_id,
            args.success,
            summary=args.summary,
            scores=scores,
            json_output=args.json,
        )
    elif args.command == "rate":
        cli.rate(args.mission_id, args.rater_id, args.target_id, args.rating)


if __name__ == "__main__":
    main()
