"""Complexity Scorer for assessment item descriptions.

Extracts qualitative signals from free-text item details and classifies
hour estimates into size bands. Item details are written in a mix of
English and Indonesian, so every keyword list carries both.
"""

from dataclasses import dataclass

try:
    from .estimation_config import SizeBands
except ImportError:
    from estimation_config import SizeBands


SIZE_LABELS = ("XS", "S", "M", "L", "XL")
MEDIUM_INDEX = 2

FIELD_KEYWORDS = ("field", "kolom", "input")
INTEGRATION_KEYWORDS = ("integrasi", "api", "webhook", "gateway")
WORKFLOW_KEYWORDS = ("approval", "review", "step", "tahap")
UPLOAD_KEYWORDS = ("upload",)
AUTH_KEYWORDS = ("role", "otorisasi", "permission")
CREATE_KEYWORDS = ("create", "tambah", "buat")
READ_KEYWORDS = ("read", "lihat", "daftar")
UPDATE_KEYWORDS = ("update", "ubah", "edit")
DELETE_KEYWORDS = ("delete", "hapus")

# Score -> size class upper bounds (XS..L), anything above is XL
SCORE_SIZE_THRESHOLDS = (8, 18, 32, 55)


@dataclass(frozen=True)
class ItemSignals:
    """Qualitative signals detected in an item detail."""

    fields: int = 0
    integrations: int = 0
    workflow_steps: int = 0
    has_upload: bool = False
    has_auth_role: bool = False
    has_create: bool = False
    has_read: bool = False
    has_update: bool = False
    has_delete: bool = False

    @property
    def crud_count(self) -> int:
        return sum((self.has_create, self.has_read, self.has_update, self.has_delete))

    @property
    def crud_code(self) -> str:
        """CRUD letters present, e.g. "CRU", or "-" when none."""
        code = "".join(
            letter
            for letter, present in zip(
                "CRUD", (self.has_create, self.has_read, self.has_update, self.has_delete)
            )
            if present
        )
        return code or "-"


def _count_keywords(text: str, keywords: tuple[str, ...]) -> int:
    # One unit per matching keyword, repeats of the same keyword do not add
    return sum(1 for keyword in keywords if keyword in text)


def _has_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def extract_signals(text: str | None) -> ItemSignals:
    """Scan an item detail for complexity signals.

    Args:
        text: Free-text item detail; None is treated as empty

    Returns:
        ItemSignals with keyword counts and verb-family flags
    """
    lowered = (text or "").lower()
    return ItemSignals(
        fields=_count_keywords(lowered, FIELD_KEYWORDS),
        integrations=_count_keywords(lowered, INTEGRATION_KEYWORDS),
        workflow_steps=_count_keywords(lowered, WORKFLOW_KEYWORDS),
        has_upload=_has_any(lowered, UPLOAD_KEYWORDS),
        has_auth_role=_has_any(lowered, AUTH_KEYWORDS),
        has_create=_has_any(lowered, CREATE_KEYWORDS),
        has_read=_has_any(lowered, READ_KEYWORDS),
        has_update=_has_any(lowered, UPDATE_KEYWORDS),
        has_delete=_has_any(lowered, DELETE_KEYWORDS),
    )


def pick_size_class(base_hours: float, bands: SizeBands, adjust_cap: bool) -> str:
    """Classify raw hours against ascending size bands.

    The first band whose upper bound is >= base_hours wins; values above
    every bound are XL. With adjust_cap the result never exceeds M.

    Args:
        base_hours: Raw hour estimate
        bands: Category size bands
        adjust_cap: Cap the class at M (adjustment categories)

    Returns:
        One of XS, S, M, L, XL
    """
    thresholds = bands.as_tuple()
    index = next(
        (i for i, upper in enumerate(thresholds) if base_hours <= upper),
        len(thresholds) - 1,
    )
    if adjust_cap and index > MEDIUM_INDEX:
        index = MEDIUM_INDEX
    return SIZE_LABELS[index]


def normalize_size_class(value: str | None) -> str:
    """Return the canonical size label, or "" when value is not one."""
    label = (value or "").strip().upper()
    return label if label in SIZE_LABELS else ""


def size_class_rank(label: str) -> int:
    """Ordinal of a size label; unknown labels rank as S."""
    try:
        return SIZE_LABELS.index(label)
    except ValueError:
        return 1


def calculate_complexity_score(signals: ItemSignals) -> float:
    """Weighted complexity score of the signals, capped at 100."""
    score = signals.fields * 1.8 + signals.integrations * 15 + signals.workflow_steps * 6
    if signals.has_upload:
        score += 6
    if signals.has_auth_role:
        score += 10
    score += signals.crud_count * 4
    return min(100.0, score)


def map_score_to_size_class(score: float, signals: ItemSignals) -> str:
    """Size class for a complexity score, adjusted by strong signals.

    Integrations and field counts set floors and ceilings so that an item
    with several integrations is never XS, and an item with only a handful
    of fields never grows past S.
    """
    size = next(
        (SIZE_LABELS[i] for i, upper in enumerate(SCORE_SIZE_THRESHOLDS) if score <= upper),
        "XL",
    )

    if signals.integrations >= 2 and size_class_rank(size) < size_class_rank("M"):
        size = "M"
    if signals.integrations >= 3 and size_class_rank(size) < size_class_rank("L"):
        size = "L"
    if signals.fields >= 25 and size_class_rank(size) < size_class_rank("L"):
        size = "L"
    if signals.fields <= 3 and size_class_rank(size) > size_class_rank("S"):
        size = "S"

    return size


def band_midpoint(bands: SizeBands, size_class: str) -> float:
    """Representative hours for a size class within its band."""
    midpoints = {
        "XS": bands.xs,
        "S": (bands.xs + bands.s) / 2.0,
        "M": (bands.s + bands.m) / 2.0,
        "L": (bands.m + bands.l) / 2.0,
        "XL": (bands.l + bands.xl) / 2.0,
    }
    return midpoints.get(size_class, bands.s)
