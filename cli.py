import argparse
import json
from pathlib import Path

from pydantic import ValidationError

from cbt.database import SessionLocal, init_db
from cbt.models import AssessmentImport
from cbt.services import assessment_service
from core.logging_setup import setup_console_logging

setup_console_logging()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage timed assessments")
    sub = parser.add_subparsers(dest="command", required=True)

    import_parser = sub.add_parser("import", help="Import an assessment from JSON")
    import_parser.add_argument("file", type=Path, help="Path to assessment .json file")

    list_parser = sub.add_parser("list", help="List active assessments")
    list_parser.add_argument(
        "--learner",
        default="cli",
        help="Learner id used to report attempt usage",
    )
    return parser.parse_args(argv)


def import_file(path: Path) -> str:
    """Load an assessment definition file into the database."""
    payload = AssessmentImport.model_validate(
        json.loads(path.read_text(encoding="utf-8"))
    )
    db = SessionLocal()
    try:
        assessment = assessment_service.import_assessment(db, payload)
        return assessment.id
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    init_db()

    if args.command == "import":
        try:
            assessment_id = import_file(args.file)
        except (ValidationError, ValueError) as exc:
            print(f"Invalid assessment file {args.file}: {exc}")
            return 1
        print(f"Imported assessment {assessment_id}")
        return 0

    db = SessionLocal()
    try:
        for item in assessment_service.list_assessments(db, args.learner):
            print(
                f"{item.assessmentId}\t{item.kind}\t{item.title}\t"
                f"{item.questionCount} questions\t{item.timeLimitSeconds}s\t"
                f"{item.attemptsUsed}/{item.maxAttempts} attempts"
            )
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
