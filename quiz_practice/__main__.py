"""CLI entry point for quiz-practice.

Usage:
  python -m quiz_practice serve [--port PORT] [--host HOST]
  python -m quiz_practice stats
"""
from __future__ import annotations

import sys


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stats":
        _stats()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stats")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Quiz Practice on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "quiz_practice.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _stats():
    from quiz_practice.config import load_settings
    from quiz_practice.stats_store import StatsStore, summarize_stats
    from quiz_practice.storage import SqliteStorage

    settings = load_settings()
    storage = SqliteStorage(settings.db_full_path)
    stats = StatsStore(storage).get_stats()
    summary = summarize_stats(stats)

    print("Quiz Practice Stats")
    print("=" * 40)
    print(f"Questions answered: {summary['total_questions']}")
    print(f"Correct answers:    {summary['total_correct']}")
    print(f"Overall accuracy:   {summary['overall_accuracy']}%")
    print(f"Strongest subject:  {summary['strongest_subject'] or 'N/A'}")
    print(f"Weakest subject:    {summary['weakest_subject'] or 'Keep Practicing'}")
    print(f"Exams taken:        {summary['exams_taken']}")
    print(f"Bookmarks:          {summary['bookmark_count']}")
    print()
    for p in summary["subject_performance"]:
        print(f"  {p['subject_name']:<20} {p['total_correct']:>4}/{p['total_attempted']:<4} {p['accuracy']:>3}%")
    if stats.history:
        print("\nRecent exams:")
        for r in stats.history[:10]:
            print(f"  {r.date[:10]}  {r.subject_name:<20} {r.mode:<8} {r.difficulty:<6} "
                  f"{r.score}/{r.total_questions} ({r.percentage}%)")
    storage.close()


if __name__ == "__main__":
    main()
