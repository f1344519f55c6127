from twinfinder.core.models import OutputFormat

FORMAT_ALIASES = {
    "human": OutputFormat.HUMAN,
    "robot": OutputFormat.ROBOT,
}

FORMAT_CHOICES = list(FORMAT_ALIASES.keys())

FORMAT_HELP_TEXT = (
    "Result format:\n"
    "  human      : Numbered groups with sizes, one path per line\n"
    "  robot      : Tab separated <digest> <size> <path> lines, groups split by a blank line\n"
    "Example    : %(prog)s -i ~/Downloads --format robot > dupes.tsv\n"
)

MAX_READ_HELP_TEXT = (
    "Maximum bytes read per file for the full hash (e.g., 512M, 1G). Default: 1G\n"
    "Larger files are compared on their leading bytes plus their size"
)

MODE_HELP_TEXT = (
    "Hash candidates on the calling thread instead of the worker pool.\n"
    "Produces exactly the same groups, only slower on fast storage"
)

EPILOG_TEXT = """
Pipeline:
  Size → Hardlinks → Head sample (64B) → Tail sample (1KB) → Full Hash [→ Byte compare]

Examples:
  Basic usage - find duplicates in Downloads folder
  %(prog)s -i ~/Downloads

  Scan only two levels deep, with 4 hashing threads and batches of 8 files
  %(prog)s -i ~/Downloads -d 2 -w 4 -q 8

  Machine readable output for scripts
  %(prog)s -i ~/Downloads --format robot > ~/report.tsv

  Move duplicates to trash, asking for every file
  %(prog)s -i ~/Downloads --delete --interactive

  Delete duplicates permanently, confirming each hit byte by byte first
  %(prog)s -i ~/Downloads --verify --delete --permanent
"""
