"""CLI entry point for the onboarding environment checklist."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from onboarding_preflight.collaborators.loading import load_collaborator_manifest
from onboarding_preflight.console import ConsolePrompter
from onboarding_preflight.definition_loader import load_checklist
from onboarding_preflight.errors import ValidationError
from onboarding_preflight.models.definition import DEFAULT_CHECKLIST
from onboarding_preflight.orchestrator import (
    WIDGET_SETTLE_DELAY,
    TestOrchestrator,
    validate_identity,
)
from onboarding_preflight.report import format_output, log_results_summary


async def run(
    email: str,
    collaborator_key: str,
    collaborator_config_json: str,
    checklist_path: Path | None = None,
    output_path: Path | None = None,
    widget_settle_delay: float = WIDGET_SETTLE_DELAY,
) -> int:
    """Run the checklist and return exit code."""
    log = logging.getLogger("onboarding_preflight")

    try:
        validate_identity(email)
    except ValidationError as exc:
        log.error("%s", exc)
        return 2

    log.info("Loading collaborator backend: %s", collaborator_key)
    manifest = load_collaborator_manifest(collaborator_key)

    config_dict = json.loads(collaborator_config_json)
    config = manifest.config_cls(**config_dict)

    if checklist_path is not None:
        log.info("Loading checklist from %s", checklist_path)
        checklist = await load_checklist(checklist_path)
    else:
        checklist = DEFAULT_CHECKLIST

    prompter = ConsolePrompter(log=log)
    async with manifest.collaborators_factory(config) as collaborators:
        orchestrator = TestOrchestrator(
            collaborators=collaborators,
            checklist=checklist,
            listener=prompter,
            widget_settle_delay=widget_settle_delay,
        )
        prompter.orchestrator = orchestrator
        try:
            await orchestrator.start_run(email)
        finally:
            prompter.close()

    report = orchestrator.report()
    log_results_summary(log, report)

    document = json.dumps(format_output(report), indent=2)
    print(document)
    if output_path is not None:
        output_path.write_text(document + "\n", encoding="utf-8")
        log.info("Report written to %s", output_path)

    return 1 if report.summary.verdict == "FAIL" else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check that this machine and network are ready for onboarding"
    )
    parser.add_argument(
        "--email",
        required=True,
        help="Email address that receives the verification code",
    )
    parser.add_argument(
        "--collaborator",
        default="http",
        help="Collaborator backend key (default: http)",
    )
    parser.add_argument(
        "--collaborator-config",
        default="{}",
        help="JSON configuration for the collaborator backend",
    )
    parser.add_argument(
        "--checklist",
        type=Path,
        default=None,
        help="YAML checklist replacing the default tests",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON report to this file",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            email=args.email,
            collaborator_key=args.collaborator,
            collaborator_config_json=args.collaborator_config,
            checklist_path=args.checklist,
            output_path=args.output,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
