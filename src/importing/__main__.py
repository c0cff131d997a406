import argparse
import json

from src.importing.api import load_uploaded_files, run_import


# python -m src.importing notes.html notes-1.png --explanation "keep the tables"
def main() -> None:
    parser = argparse.ArgumentParser(description="Convert HTML files and their images into pages.")
    parser.add_argument("files", nargs="+", help="HTML documents and image files to import")
    parser.add_argument("--explanation", default="", help="Extra instructions for the conversion")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    args = parser.parse_args()

    report = run_import(
        load_uploaded_files(args.files),
        instructions=args.explanation,
        show_progress=not args.no_progress,
    )
    print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
