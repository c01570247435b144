from decimal import Decimal

REFERENCE_OFFSET_HOURS = 8         # Asia/Hong_Kong, no DST

TRANSACTION_MAX_ATTEMPTS = 5

REBUILD_PAGE_SIZE = 500
REBUILD_WRITE_BATCH = 400

PAYOUT_TOP_N = 10
PAYOUT_RANK_CEILING = 11           # rank 1 -> 10 tokens ... rank 10 -> 1 token

# scores are held at the attempt column's precision so weekly sums are exact
SCORE_PERCENT_STEP = Decimal("0.001")
SCORE_PERCENT_MAX = Decimal("9999.999")

DEFAULT_DISPLAY_NAME = "Unknown"
DEFAULT_PROFILE_PIC = "flask_blue"
DEFAULT_THEME = "default"
