"""
Main entry point for Thai Learning Cards.

Subcommands run the API server, an auto-advancing study session, package
export, bulk audio generation and backups.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config import Config
from .errors import FlashcardError
from .export.formats import ARCHIVE_FORMATS, get_archive_format
from .models import Card
from .sample_data import SAMPLE_CARDS
from .store.card_store import CardStore
from .store.progress_store import ProgressStore


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def _open_store(args) -> CardStore:
    store = CardStore(args.data_dir)
    store.initialize(SAMPLE_CARDS)
    return store


def print_card(index: int, total: int, card: Card) -> None:
    print("\n" + "-" * 50)
    print(f"Card {index}/{total}")
    print(f"  {card.headword}  [{card.pronunciation}]")
    print(f"  {card.translation}")
    print(f"  {card.example}")
    print(f"  {card.example_translation}")


def run_study_session(cards: List[Card], orchestrator, progress: ProgressStore, level: int,
                      language: str = Config.DEFAULT_LANGUAGE,
                      on_card: Callable[[int, int, Card], None] = print_card) -> int:
    """
    Play every not yet completed card of a level, one after another.

    A card counts as completed once its sequence finished, whether or not
    its audio played.

    Returns:
        Number of cards studied in this session
    """
    completed = set(progress.get_progress(level))
    remaining = [card for card in cards if card.id not in completed]
    if not remaining:
        logger.info(f"All {len(cards)} cards of level {level} completed")
        return 0

    studied = 0
    for index, card in enumerate(remaining, 1):
        on_card(index, len(remaining), card)
        ok = orchestrator.play_sequential(
            card.headword,
            card.example,
            language,
            on_complete=lambda card_id=card.id: progress.mark_completed(level, card_id)
        )
        if not ok:
            logger.debug(f"Audio incomplete for card {card.id}")
        studied += 1

    return studied


def cmd_serve(args) -> int:
    from .web.run import main as run_server
    run_server(host=args.host, port=args.port)
    return 0


def cmd_study(args) -> int:
    from .services import build_audio_services

    store = _open_store(args)
    cards = store.list_cards(args.level)
    if not cards:
        print(f"No cards in level {args.level}")
        return 1

    progress = ProgressStore(Path(store.data_dir) / "progress.json")
    if args.restart:
        progress.reset(args.level)

    services = build_audio_services(
        audio_dir=args.audio_dir,
        server_url=args.server,
        enable_tts=not args.offline
    )

    print(f"Studying level {args.level} ({len(cards)} cards). Press Ctrl+C to stop.")
    try:
        studied = run_study_session(cards, services.orchestrator, progress, args.level, args.language)
    except KeyboardInterrupt:
        services.orchestrator.stop_current()
        print("\nSession stopped.")
        return 0

    print(f"\nStudied {studied} cards. Completed: {len(progress.get_progress(args.level))}/{len(cards)}")
    return 0


def cmd_export(args) -> int:
    from .services import build_audio_services

    store = _open_store(args)
    cards = store.list_cards(args.level)
    archive_format = get_archive_format(args.format)

    services = build_audio_services(
        audio_dir=args.audio_dir,
        server_url=args.server,
        enable_tts=False,
        enable_synthesis=False,
        language=args.language
    )

    def report(message: str, percent: int) -> None:
        print(f"[{percent:3d}%] {message}")

    exported = services.exporter.build_archive(cards, args.level, report, archive_format)

    output_dir = Path(args.output_dir or Config.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / exported.filename
    output_path.write_bytes(exported.content)

    if exported.is_fallback:
        print(f"Package build failed ({exported.error}); wrote basic card export to {output_path}")
        return 1

    print(f"Package saved: {output_path} ({len(exported.content) / 1024:.1f} KB)")
    return 0


def cmd_generate_audio(args) -> int:
    from .audio.bulk import generate_bulk_audio
    from .services import build_audio_services

    store = _open_store(args)
    cards = store.list_cards(args.level)
    services = build_audio_services(
        audio_dir=args.audio_dir,
        server_url=args.server,
        enable_synthesis=False
    )

    result = generate_bulk_audio(cards, services.resolver, language=args.language)
    print(result.message)
    for text in result.failed_texts:
        print(f"   • {text}")
    return 0 if result.fail_count == 0 else 1


def cmd_backup(args) -> int:
    from .store.backup import create_backup

    store = _open_store(args)
    path = create_backup(store, args.backup_dir, keep=args.keep)
    print(f"Backup saved: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Thai vocabulary flashcards with audio playback and package export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve --port 3000
  %(prog)s study --level 1
  %(prog)s export --level 2 --format zip
  %(prog)s generate-audio --level 1
  %(prog)s backup
        """
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--data-dir",
        default=str(Config.DATA_DIR),
        help="Directory holding the level files"
    )

    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the web API")
    serve.add_argument("--host", default=None, help="Bind address")
    serve.add_argument("--port", type=int, default=None, help="Port (default FLASK_PORT or 3000)")
    serve.set_defaults(func=cmd_serve)

    def add_audio_options(sub):
        sub.add_argument("--level", "-l", type=int, required=True, choices=Config.LEVELS)
        sub.add_argument("--language", default=Config.DEFAULT_LANGUAGE, help="Language tag")
        sub.add_argument("--audio-dir", default=str(Config.AUDIO_DIR), help="Stored audio directory")
        sub.add_argument("--server", default=None,
                         help="Use stored audio from a running server instead of the local directory")

    study = subparsers.add_parser("study", help="Auto-advancing audio study session")
    add_audio_options(study)
    study.add_argument("--restart", action="store_true", help="Forget progress for the level first")
    study.add_argument("--offline", action="store_true", help="Do not call the remote TTS service")
    study.set_defaults(func=cmd_study)

    export = subparsers.add_parser("export", help="Export a level as a downloadable package")
    add_audio_options(export)
    export.add_argument("--format", "-f", default="zip", choices=sorted(ARCHIVE_FORMATS))
    export.add_argument("--output-dir", "-o", default=None, help="Output directory")
    export.set_defaults(func=cmd_export)

    generate = subparsers.add_parser("generate-audio", help="Generate audio for every card of a level")
    add_audio_options(generate)
    generate.set_defaults(func=cmd_generate_audio)

    backup = subparsers.add_parser("backup", help="Back up all card data")
    backup.add_argument("--backup-dir", default=str(Config.BACKUP_DIR), help="Backup directory")
    backup.add_argument("--keep", type=int, default=Config.BACKUP_KEEP, help="Backups to keep")
    backup.set_defaults(func=cmd_backup)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'func', None):
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        return args.func(args)
    except FlashcardError as e:
        logger.error(f"{e}")
        print(f"❌ {e}")
        for action in e.processing_error.suggested_actions[:1]:
            print(f"   Suggestion: {action}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
