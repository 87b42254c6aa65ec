"""Generate a training plan from a preferences JSON file and print it."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.logging_config import configure_logging
from app.models.schemas import GeneratedPlan, TrainingPreferences
from app.services.ai.errors import AIServiceError
from app.services.ai.factory import AIServiceFactory
from app.services.training_planner import TrainingPlanner


logger = logging.getLogger("scripts.generate_plan")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an AI training plan",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use the provider configured in .env
  python scripts/generate_plan.py preferences.json

  # Try Gemini and fall back to the rule-based plan on failure
  python scripts/generate_plan.py preferences.json --provider google --fallback

  # Write the plan to a file
  python scripts/generate_plan.py preferences.json --output plan.json
        """
    )
    parser.add_argument("preferences", type=Path, help="Path to a TrainingPreferences JSON file")
    parser.add_argument("--provider", type=str, help="Override AI_PROVIDER for this run")
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Use the rule-based plan if the AI provider fails"
    )
    parser.add_argument("--output", type=Path, help="Write the plan here instead of stdout")
    return parser.parse_args(argv)


def load_preferences(path: Path) -> TrainingPreferences:
    with path.open("r", encoding="utf-8") as fh:
        return TrainingPreferences.model_validate(json.load(fh))


async def generate(
    preferences: TrainingPreferences,
    provider: str | None = None,
    fallback: bool = False,
    factory: AIServiceFactory | None = None,
) -> GeneratedPlan:
    settings = get_settings()
    if factory is None:
        factory = AIServiceFactory(prompt_config_path=settings.prompt_config_path)
    service = factory.get_service(settings.ai_service_config(provider))
    return await TrainingPlanner(service).generate_plan(preferences, fallback=fallback)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)

    preferences = load_preferences(args.preferences)
    try:
        plan = asyncio.run(generate(preferences, provider=args.provider, fallback=args.fallback))
    except AIServiceError as err:
        logger.error("Plan generation failed: %s", err.to_dict())
        return 1

    rendered = json.dumps(plan.to_payload(), indent=2)
    if args.output:
        args.output.write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote %d-week plan to %s", len(plan.weekly_plans), args.output)
    else:
        print(rendered)
    return 0


if __name__ == "__main__":
    sys.exit(main())
