"""
Minimal one-call smoke test to verify access to the active AI provider.

Usage:
  export OPENAI_API_KEY=your_key   # or GEMINI_API_KEY / OLLAMA_*
  uv run python scripts/provider_smoke.py --provider openai --model gpt-4o-mini
"""
import argparse
import sys
from pathlib import Path

# Ensure repository root is on sys.path for local execution.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import get_settings
from llm.client import RequestDispatcher
from llm.errors import ResumeAIError
from llm.registry import ProviderRegistry
from llm.storage import MemoryStore


def main():
    parser = argparse.ArgumentParser(description="AI provider smoke test (single call).")
    parser.add_argument("--provider", help="Provider id, e.g. gemini, openai, ollama-local.")
    parser.add_argument("--model", help="Model name to test.")
    args = parser.parse_args()

    settings = get_settings()
    registry = ProviderRegistry(settings, MemoryStore())
    try:
        if args.provider:
            registry.set_active_provider(args.provider, args.model)
        selection = registry.get_selection()
        print("Available:", ", ".join(i.provider.value for i in registry.list_available_providers()))
        print(f"Using {selection.provider.value} / {selection.model}")
        resp = RequestDispatcher(settings).dispatch(
            selection.provider, selection.model, "Say a short greeting with exactly 3 words."
        )
    except ResumeAIError as exc:
        raise SystemExit(f"Smoke test failed: {exc}")
    print("Response:", resp)


if __name__ == "__main__":
    main()
