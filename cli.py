import argparse
import datetime
import json
import logging
import shutil
import sys

from config import DEFAULT_DB_PATH, DEFAULT_SETTINGS_PATH, YamlConfig
from exercise_schema import EXERCISE_TYPE_VALUES, INTENSITY_LEVEL_VALUES, validate_exercise
from rest_api import ExerciseAPI


def add_exercise(db_path: str, yaml_path: str, fields: dict) -> dict:
    """Validate ``fields`` and log them as a new exercise."""
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    result = api.store.create(validate_exercise(fields))
    if not result:
        raise RuntimeError(result.message)
    return result.value


def list_exercises(
    db_path: str,
    yaml_path: str,
    exercise_type: str | None = None,
    intensity_level: str | None = None,
    start: str | None = None,
    end: str | None = None,
) -> list[dict]:
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    return api.store.fetch_all(exercise_type, intensity_level, start, end)


def show_stats(db_path: str, yaml_path: str) -> dict:
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    return api.statistics.overview()


def export_exercises(db_path: str, yaml_path: str, output: str | None = None) -> str:
    """Write the export payload to ``output`` (or a dated file) and return its path."""
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    now = datetime.datetime.now(datetime.timezone.utc)
    out_path = output or api.exchange.export_filename(now)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(api.exchange.export_json(now))
    return out_path


def import_exercises(db_path: str, yaml_path: str, input_path: str) -> dict:
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    with open(input_path, "r", encoding="utf-8") as f:
        payload = f.read()
    return api.exchange.import_data(payload).to_dict()


def clear_exercises(db_path: str, yaml_path: str) -> bool:
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    return api.exchange.clear_all().success


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, yaml_path: str) -> None:
    """Populate the log with a few recent exercises if it is empty."""
    api = ExerciseAPI(db_path=db_path, yaml_path=yaml_path)
    if api.store.count():
        print("Database already contains exercises")
        return
    today = datetime.date.today()
    samples = [
        ("Morning Run", "running", 30, "moderate", 300, 0),
        ("Upper Body", "strength", 45, "high", 250, 1),
        ("Evening Yoga", "yoga", 60, "low", None, 2),
    ]
    for name, ex_type, minutes, intensity, calories, days_ago in samples:
        api.store.create(
            validate_exercise(
                {
                    "name": name,
                    "type": ex_type,
                    "duration": minutes,
                    "intensityLevel": intensity,
                    "caloriesBurned": calories,
                    "date": (today - datetime.timedelta(days=days_ago)).isoformat(),
                }
            )
        )
    print("Demo data inserted")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Exercise log commands")
    parser.add_argument("--db", default=DEFAULT_DB_PATH)
    parser.add_argument("--yaml", default=DEFAULT_SETTINGS_PATH)
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    add = sub.add_parser("add")
    add.add_argument("--name", required=True)
    add.add_argument("--type", choices=EXERCISE_TYPE_VALUES, required=True)
    add.add_argument("--duration", type=int, required=True)
    add.add_argument("--intensity", choices=INTENSITY_LEVEL_VALUES, default="moderate")
    add.add_argument("--calories", type=int, default=None)
    add.add_argument("--date", default=None)
    add.add_argument("--notes", default=None)

    lst = sub.add_parser("list")
    lst.add_argument("--type", default=None)
    lst.add_argument("--intensity", default=None)
    lst.add_argument("--start", default=None)
    lst.add_argument("--end", default=None)

    sub.add_parser("stats")

    exp = sub.add_parser("export")
    exp.add_argument("--out", default=None)

    imp = sub.add_parser("import")
    imp.add_argument("--in", dest="src", required=True)

    clr = sub.add_parser("clear")
    clr.add_argument("--yes", action="store_true")

    sub.add_parser("demo")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")

    args = parser.parse_args(argv)
    level = args.log_level or YamlConfig(args.yaml).load().get("log_level", "INFO")
    logging.basicConfig(level=str(level).upper())

    if args.cmd == "add":
        try:
            exercise = add_exercise(
                args.db,
                args.yaml,
                {
                    "name": args.name,
                    "type": args.type,
                    "duration": args.duration,
                    "intensityLevel": args.intensity,
                    "caloriesBurned": args.calories,
                    "date": args.date or datetime.date.today().isoformat(),
                    "notes": args.notes,
                },
            )
        except (ValueError, RuntimeError) as e:
            print(e, file=sys.stderr)
            return 1
        print(json.dumps(exercise, indent=2))
    elif args.cmd == "list":
        try:
            rows = list_exercises(
                args.db, args.yaml, args.type, args.intensity, args.start, args.end
            )
        except ValueError as e:
            print(e, file=sys.stderr)
            return 1
        for ex in rows:
            print(
                f"{ex['date'][:10]}  {ex['name']:<24} {ex['type']:<12} "
                f"{ex['duration']:>4} min  {ex['intensityLevel']}"
            )
    elif args.cmd == "stats":
        print(json.dumps(show_stats(args.db, args.yaml), indent=2))
    elif args.cmd == "export":
        print(export_exercises(args.db, args.yaml, args.out))
    elif args.cmd == "import":
        result = import_exercises(args.db, args.yaml, args.src)
        print(result["message"])
        if not result["success"]:
            return 1
    elif args.cmd == "clear":
        if not args.yes:
            print("Refusing to clear without --yes", file=sys.stderr)
            return 1
        if not clear_exercises(args.db, args.yaml):
            return 1
        print("All exercises removed")
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    return 0


if __name__ == "__main__":
    sys.exit(main())
