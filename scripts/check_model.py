#!/usr/bin/env python3
"""
Quick script to check that the configured language model endpoint answers
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Config
from meeting_manager.ai_agent.llm_client import LLMClient
from meeting_manager.errors import ExternalServiceError


def check_model_availability():
    """Check the endpoint lists models and completes a tiny prompt"""

    print(f"🔍 Checking {Config.DEFAULT_MODEL} availability...")
    print(f"Endpoint: {Config.OPENAI_BASE_URL or 'https://api.openai.com/v1'}")

    problems = Config.validate()
    for problem in problems:
        print(f"  ❌ {problem}")
    if any("OPENAI_API_KEY" in p for p in problems):
        print("\n💡 Set OPENAI_API_KEY in the environment or in a .env file")
        return False

    client = LLMClient()

    if client.health_check():
        print("  ✅ Endpoint reachable")
    else:
        print("  ❌ Endpoint not reachable")
        return False

    try:
        reply = client.complete("Answer with one word.", "Say OK.")
    except ExternalServiceError as e:
        print(f"  ❌ Completion failed: {e.message}")
        return False

    print(f"  ✅ Completion works: {reply[:40]!r}")
    return True


def main():
    print("Meeting Manager Model Checker")
    print("=" * 30)

    success = check_model_availability()

    if success:
        print("\n✅ Ready to run the Meeting Manager agent!")
    else:
        print("\n❌ Please fix the model configuration before continuing")
        sys.exit(1)


if __name__ == "__main__":
    main()
