#!/usr/bin/env python3
"""Presales Estimation Engine - Python CLI

Rolls assessment documents up into role/activity totals and Gantt tasks,
and estimates or classifies single items from the command line.

Usage:
    presales-estimate [command] [options]
    presales-estimate --help
    presales-estimate [command] --help
"""

import argparse
import json
import logging
import sys
from pathlib import Path

try:
    from .assessment_models import Assessment, AssessmentItem
    from .assessment_task_aggregator import summarize_assessment
    from .complexity_scorer import pick_size_class
    from .estimation_config import PresalesConfiguration, load_configuration
    from .exceptions import CLIError, ConfigError, ValidationError
    from .item_estimator import ItemEstimator, is_adjust_category
    from .report_generator import SummaryReportGenerator
except ImportError:
    from assessment_models import Assessment, AssessmentItem
    from assessment_task_aggregator import summarize_assessment
    from complexity_scorer import pick_size_class
    from estimation_config import PresalesConfiguration, load_configuration
    from exceptions import CLIError, ConfigError, ValidationError
    from item_estimator import ItemEstimator, is_adjust_category
    from report_generator import SummaryReportGenerator


# Exit codes
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_VALIDATION_ERROR = 3

DEFAULT_COLUMNS = ["Estimate"]


class EstimationCLI:
    """Main CLI class."""

    def __init__(self):
        self.debug = False
        self.logger = logging.getLogger(__name__)

    def log(self, message: str):
        """Log a message."""
        self.logger.info(message)

    def log_error(self, message: str):
        """Log an error message."""
        self.logger.error(message)

    def _load_config(self, config_path: str | None) -> PresalesConfiguration:
        if not config_path:
            return PresalesConfiguration.default()
        return load_configuration(Path(config_path))

    def _emit(self, content: str, output: str | None) -> None:
        if output:
            Path(output).write_text(content, encoding="utf-8")
            self.log(f"✓ Written: {output}")
        else:
            print(content)

    def _run_command(self, handler, args) -> int:
        """Run a command handler and translate errors to exit codes."""
        try:
            return handler(args)
        except ConfigError as e:
            self.log_error(f"Configuration error: {e}")
            return EXIT_CONFIG_ERROR
        except ValidationError as e:
            self.log_error(str(e))
            return EXIT_VALIDATION_ERROR
        except CLIError as e:
            self.log_error(str(e))
            return EXIT_GENERAL_ERROR
        except Exception as e:
            if self.debug:
                import traceback

                traceback.print_exc()
            self.log_error(f"Command failed: {str(e)}")
            return EXIT_GENERAL_ERROR

    def cmd_summarize(self, args):
        """Aggregate an assessment JSON document."""
        if args.man_days_per is not None and not args.man_days_per > 0:
            raise CLIError(f"--man-days-per must be a positive number of hours, got {args.man_days_per}")

        assessment_path = Path(args.assessment)
        if not assessment_path.exists():
            raise CLIError(f"Assessment file not found: {assessment_path}")

        try:
            with open(assessment_path, encoding="utf-8") as f:
                assessment = Assessment.from_dict(json.load(f))
        except json.JSONDecodeError as e:
            raise CLIError(f"Assessment file is not valid JSON: {e}") from e

        config = self._load_config(args.config)
        summary = summarize_assessment(
            assessment, config, include_not_needed=not args.skip_not_needed
        )

        unit = "hours"
        if args.man_days_per is not None:
            summary = summary.in_man_days(args.man_days_per)
            unit = "man_days"

        title = f"Estimation Summary: {assessment.project_name}" if assessment.project_name else "Estimation Summary"
        generator = SummaryReportGenerator(summary, title=title, unit=unit)
        if args.format == "markdown":
            content = generator.to_markdown()
        else:
            content = json.dumps(generator.to_dict(), indent=2, ensure_ascii=False)

        self._emit(content, args.output)
        return EXIT_SUCCESS

    def cmd_estimate_item(self, args):
        """Estimate hours for a single item description."""
        config = self._load_config(args.config)
        estimator = ItemEstimator(config.policy)
        item = AssessmentItem(
            item_id=args.item_id or "",
            item_name=args.name or "",
            item_detail=args.detail,
            category=args.category or "",
        )
        estimate = estimator.estimate_item(
            item,
            args.column or DEFAULT_COLUMNS,
            requested_size_class=args.size_class,
            justification_score=args.justification_score,
        )

        payload = {
            "category": estimate.category,
            "signals": {
                "fields": estimate.signals.fields,
                "integrations": estimate.signals.integrations,
                "workflowSteps": estimate.signals.workflow_steps,
                "hasUpload": estimate.signals.has_upload,
                "hasAuthRole": estimate.signals.has_auth_role,
                "crud": estimate.signals.crud_code,
            },
            "complexityScore": estimate.complexity_score,
            "sizeClass": estimate.size_class,
            "crudMultiplier": estimate.crud_multiplier,
            "rawHours": round(estimate.raw_hours, 3),
            "estimates": estimate.estimates,
            "normalizedSizeClass": estimate.normalized_size_class,
        }
        self._emit(json.dumps(payload, indent=2, ensure_ascii=False), args.output)
        return EXIT_SUCCESS

    def cmd_classify(self, args):
        """Classify raw hours into a size band."""
        config = self._load_config(args.config)
        policy = config.policy
        adjust_cap = is_adjust_category(args.category) and policy.cap_adjust_categories_to_max_m
        label = pick_size_class(args.hours, policy.bands_for(args.category), adjust_cap)
        self._emit(label, args.output)
        return EXIT_SUCCESS

    def run(self, argv=None):
        """Main entry point."""
        parser = argparse.ArgumentParser(
            prog="presales-estimate",
            description="Presales Estimation Engine - roll up assessment estimates",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  presales-estimate summarize assessment.json --config presales_config.toml
  presales-estimate summarize assessment.json --format markdown --man-days-per 8
  presales-estimate estimate-item --detail "Form input 5 field, upload, approval" --category "New UI"
  presales-estimate classify 20 --category "Adjust Existing UI"

For help on a specific command:
  presales-estimate [command] --help
            """,
        )

        parser.add_argument(
            "--version", action="version", version="%(prog)s 1.0.0"
        )
        parser.add_argument(
            "--debug",
            "-d",
            action="store_true",
            help="Verbose logging and stack traces on error",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Command to run"
        )

        # summarize
        summarize_parser = subparsers.add_parser(
            "summarize", help="Aggregate an assessment into column/role/activity totals and Gantt tasks"
        )
        summarize_parser.add_argument(
            "assessment", type=str, help="Assessment JSON document"
        )
        summarize_parser.add_argument(
            "--config", type=str, help="Presales configuration (TOML or JSON)"
        )
        summarize_parser.add_argument(
            "--format",
            "-f",
            choices=["json", "markdown"],
            default="json",
            help="Output format (default: json)",
        )
        summarize_parser.add_argument(
            "--man-days-per",
            type=float,
            metavar="HOURS",
            help="Report man-days, dividing hours by this many hours per day",
        )
        summarize_parser.add_argument(
            "--skip-not-needed",
            action="store_true",
            help="Leave out items marked as not needed",
        )
        summarize_parser.add_argument(
            "--output", "-o", type=str, help="Write output to file instead of stdout"
        )

        # estimate-item
        estimate_parser = subparsers.add_parser(
            "estimate-item", help="Estimate hours for one item description"
        )
        estimate_parser.add_argument(
            "--detail", required=True, type=str, help="Free-text item detail"
        )
        estimate_parser.add_argument("--name", type=str, help="Item name")
        estimate_parser.add_argument("--item-id", type=str, help="Item id")
        estimate_parser.add_argument(
            "--category", type=str, help="Item category (e.g. 'New UI')"
        )
        estimate_parser.add_argument(
            "--size-class",
            choices=["XS", "S", "M", "L", "XL"],
            help="Requested size class (overrides the score mapping)",
        )
        estimate_parser.add_argument(
            "--justification-score",
            type=float,
            default=0.0,
            help="Confidence in the requested size class, 0..1 (default: 0)",
        )
        estimate_parser.add_argument(
            "--column",
            action="append",
            help="Estimation column to fill (repeatable, default: Estimate)",
        )
        estimate_parser.add_argument(
            "--config", type=str, help="Presales configuration (TOML or JSON)"
        )
        estimate_parser.add_argument(
            "--output", "-o", type=str, help="Write output to file instead of stdout"
        )

        # classify
        classify_parser = subparsers.add_parser(
            "classify", help="Classify raw hours into a size band (XS..XL)"
        )
        classify_parser.add_argument("hours", type=float, help="Raw hour estimate")
        classify_parser.add_argument(
            "--category", type=str, help="Item category (selects the bands)"
        )
        classify_parser.add_argument(
            "--config", type=str, help="Presales configuration (TOML or JSON)"
        )
        classify_parser.add_argument(
            "--output", "-o", type=str, help="Write output to file instead of stdout"
        )

        # Parse arguments
        args = parser.parse_args(argv)
        self.debug = args.debug

        # Configure logging
        log_level = logging.DEBUG if self.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(message)s",
            handlers=[logging.StreamHandler(stream=sys.stderr)],
        )

        # Dispatch to command handler
        if args.command == "summarize":
            return self._run_command(self.cmd_summarize, args)
        elif args.command == "estimate-item":
            return self._run_command(self.cmd_estimate_item, args)
        elif args.command == "classify":
            return self._run_command(self.cmd_classify, args)
        else:
            parser.print_help()
            return EXIT_SUCCESS


def main():
    """Command-line entry point."""
    cli = EstimationCLI()
    exit_code = cli.run()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
