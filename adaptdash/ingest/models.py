# models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Sequence, Tuple


ColumnKind = Literal["timestamp", "text", "number"]
IndexKind = Literal["support", "challenge"]

EXPECTED_COLUMNS = 34
UNKNOWN = "Unknown"

YEARS_BUCKETS: Tuple[str, ...] = ("0-5", "6-10", "11-20", "21-30", "30+")


@dataclass(frozen=True)
class ColumnSpec:
    index: int
    name: str
    export_key: str
    kind: ColumnKind
    label: str
    header_hints: Tuple[str, ...] = ()


@dataclass(frozen=True)
class QuestionDef:
    key: str
    label: str
    family: str  # support/challenge/agreement
    full_text: Optional[str] = None


@dataclass(frozen=True)
class SizeBucket:
    name: str
    min: float
    max: float

    def contains(self, size: float) -> bool:
        return self.min <= size <= self.max


GROUP_SIZE_BUCKETS: Tuple[SizeBucket, ...] = (
    SizeBucket("≤15", 0, 15),
    SizeBucket("16-20", 16, 20),
    SizeBucket("21-25", 21, 25),
    SizeBucket("26+", 26, float("inf")),
)


# The positional export layout. Everything that reads or writes a row derives from this table.
COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec(0, "timestamp", "timestamp", "timestamp", "Timestamp", ("timestamp", "tidstämpel")),
    ColumnSpec(1, "consent", "consent", "text", "Consent", ("consent", "samtycke")),
    ColumnSpec(2, "currently_teaching", "currentlyTeaching", "text", "Currently Teaching",
               ("currently teaching", "undervisar du")),

    ColumnSpec(3, "support_q1", "supportQ1", "number", "Extra time to finish", ("extra time",)),
    ColumnSpec(4, "support_q2", "supportQ2", "number", "Easier/supported version", ("easier", "supported version")),
    ColumnSpec(5, "support_q3", "supportQ3", "number", "Limit to core requirements", ("core requirements",)),
    ColumnSpec(6, "support_q4", "supportQ4", "number", "Different ways to access task", ("different ways",)),
    ColumnSpec(7, "support_q5", "supportQ5", "number", "Choose topic for motivation", ("choose", "topic")),
    ColumnSpec(8, "support_q6", "supportQ6", "number", "Flexible grouping (support)", ("grouping",)),

    ColumnSpec(9, "challenge_q1", "challengeQ1", "number", "Move to planned next task", ("next task",)),
    ColumnSpec(10, "challenge_q2", "challengeQ2", "number", "Harder version of task", ("harder version",)),
    ColumnSpec(11, "challenge_q3", "challengeQ3", "number", "More/deeper content", ("deeper", "more content")),
    ColumnSpec(12, "challenge_q4", "challengeQ4", "number", "More demanding mode", ("demanding",)),
    ColumnSpec(13, "challenge_q5", "challengeQ5", "number", "Interest-based extension", ("interest",)),
    ColumnSpec(14, "challenge_q6", "challengeQ6", "number", "Flexible grouping (challenge)", ("grouping",)),

    ColumnSpec(15, "item_time_to_differentiate", "itemTimeToDifferentiate", "text", "Time to Differentiate",
               ("sufficient time", "time to differentiate")),
    ColumnSpec(16, "item_class_size_ok", "itemClassSizeOk", "text", "Class Size OK",
               ("class size allows", "class size")),
    ColumnSpec(17, "item_confident_support", "itemConfidentSupport", "text", "Confident Support",
               ("confident designing support", "confident support")),
    ColumnSpec(18, "item_confident_challenge", "itemConfidentChallenge", "text", "Confident Challenge",
               ("confident designing challenge", "confident challenge")),
    ColumnSpec(19, "item_teacher_ed_prepared", "itemTeacherEdPrepared", "text", "Teacher Ed Prepared",
               ("teacher education",)),
    ColumnSpec(20, "item_formative_helps", "itemFormativeHelps", "text", "Formative Helps", ("formative",)),
    ColumnSpec(21, "item_digital_tools", "itemDigitalTools", "text", "Digital Tools", ("digital tools",)),
    ColumnSpec(22, "item_materials_support", "itemMaterialsSupport", "text", "Materials Support",
               ("materials for support", "materials support")),
    ColumnSpec(23, "item_materials_challenge", "itemMaterialsChallenge", "text", "Materials Challenge",
               ("materials for challenge", "materials challenge")),

    ColumnSpec(24, "open_helps_most", "openHelpsMost", "text", "What helps most", ("helps you most", "helps most")),
    ColumnSpec(25, "open_hinders_most", "openHindersMost", "text", "What hinders most", ("hinders",)),
    ColumnSpec(26, "open_other", "openOther", "text", "Other comments", ("anything else", "other comments")),

    ColumnSpec(27, "has_certification", "hasCertification", "text", "Certification", ("certif", "behörighet")),
    ColumnSpec(28, "levels_teaching", "levelsTeaching", "text", "Levels Teaching", ("levels", "årskurs")),
    ColumnSpec(29, "years_teaching", "yearsTeaching", "text", "Years Teaching", ("years", "antal år")),
    ColumnSpec(30, "school_type", "schoolType", "text", "School Type", ("school type", "type of school", "skolform")),
    ColumnSpec(31, "group_size", "groupSize", "number", "Group Size", ("group size", "number of students")),
    ColumnSpec(32, "share_support_students", "shareSupportStudents", "text", "Share Support Students",
               ("need support", "needing support", "support students")),
    ColumnSpec(33, "share_challenge_students", "shareChallengeStudents", "text", "Share Challenge Students",
               ("need challenge", "needing challenge", "challenge students")),
)

COLUMNS_BY_NAME: Dict[str, ColumnSpec] = {c.name: c for c in COLUMNS}

SUPPORT_KEYS: Tuple[str, ...] = tuple(f"support_q{i}" for i in range(1, 7))
CHALLENGE_KEYS: Tuple[str, ...] = tuple(f"challenge_q{i}" for i in range(1, 7))

LIKERT_QUESTIONS: Tuple[QuestionDef, ...] = tuple(
    QuestionDef(key=k, label=COLUMNS_BY_NAME[k].label, family="support") for k in SUPPORT_KEYS
) + tuple(
    QuestionDef(key=k, label=COLUMNS_BY_NAME[k].label, family="challenge") for k in CHALLENGE_KEYS
)

AGREEMENT_ITEMS: Tuple[QuestionDef, ...] = (
    QuestionDef("item_time_to_differentiate", "Time to Differentiate", "agreement",
                "I have sufficient time to differentiate for diverse needs."),
    QuestionDef("item_class_size_ok", "Class Size OK", "agreement",
                "My typical class size allows me to adapt instruction effectively."),
    QuestionDef("item_confident_support", "Confident Support", "agreement",
                "I feel confident designing support-focused adaptations."),
    QuestionDef("item_confident_challenge", "Confident Challenge", "agreement",
                "I feel confident designing challenge-focused adaptations."),
    QuestionDef("item_teacher_ed_prepared", "Teacher Ed Prepared", "agreement",
                "My teacher education prepared me to adapt instruction for diverse needs."),
    QuestionDef("item_formative_helps", "Formative Helps", "agreement",
                "Formative assessment helps me identify and target adaptations efficiently."),
    QuestionDef("item_digital_tools", "Digital Tools", "agreement",
                "Digital tools make it easier to adapt lessons for students with different levels and needs."),
    QuestionDef("item_materials_support", "Materials Support", "agreement",
                "I have access to suitable materials for support adaptations."),
    QuestionDef("item_materials_challenge", "Materials Challenge", "agreement",
                "I have access to suitable materials for challenge adaptations."),
)

INDEX_FIELDS: Dict[str, str] = {
    "support": "support_adaptation_index",
    "challenge": "challenge_adaptation_index",
}

# Export header: the positional columns followed by the derived attributes.
DERIVED_EXPORT: Tuple[Tuple[str, str], ...] = (
    ("support_adaptation_index", "supportAdaptationIndex"),
    ("challenge_adaptation_index", "challengeAdaptationIndex"),
    ("years_teaching_category", "yearsTeachingCategory"),
)
EXPORT_COLUMNS: Tuple[Tuple[str, str], ...] = tuple((c.name, c.export_key) for c in COLUMNS) + DERIVED_EXPORT
EXPORT_KEYS: Tuple[str, ...] = tuple(k for _, k in EXPORT_COLUMNS)


def adaptation_index(values: Sequence[Optional[float]]) -> Optional[float]:
    # Mean of the answered sub-questions; None when none were answered.
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


@dataclass(frozen=True)
class SurveyRecord:
    timestamp: str = ""
    consent: str = ""
    currently_teaching: str = ""

    support_q1: Optional[float] = None
    support_q2: Optional[float] = None
    support_q3: Optional[float] = None
    support_q4: Optional[float] = None
    support_q5: Optional[float] = None
    support_q6: Optional[float] = None

    challenge_q1: Optional[float] = None
    challenge_q2: Optional[float] = None
    challenge_q3: Optional[float] = None
    challenge_q4: Optional[float] = None
    challenge_q5: Optional[float] = None
    challenge_q6: Optional[float] = None

    # Agreement items keep the raw answer text; scoring happens at analysis time.
    item_time_to_differentiate: str = ""
    item_class_size_ok: str = ""
    item_confident_support: str = ""
    item_confident_challenge: str = ""
    item_teacher_ed_prepared: str = ""
    item_formative_helps: str = ""
    item_digital_tools: str = ""
    item_materials_support: str = ""
    item_materials_challenge: str = ""

    open_helps_most: str = ""
    open_hinders_most: str = ""
    open_other: str = ""

    has_certification: str = ""
    levels_teaching: str = ""
    years_teaching: str = ""
    school_type: str = ""
    group_size: Optional[float] = None
    share_support_students: str = ""
    share_challenge_students: str = ""

    years_teaching_category: str = UNKNOWN

    support_adaptation_index: Optional[float] = field(init=False, default=None)
    challenge_adaptation_index: Optional[float] = field(init=False, default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "support_adaptation_index", adaptation_index(self.support_values))
        object.__setattr__(self, "challenge_adaptation_index", adaptation_index(self.challenge_values))

    @property
    def support_values(self) -> Tuple[Optional[float], ...]:
        return tuple(getattr(self, k) for k in SUPPORT_KEYS)

    @property
    def challenge_values(self) -> Tuple[Optional[float], ...]:
        return tuple(getattr(self, k) for k in CHALLENGE_KEYS)

    def index(self, kind: str) -> Optional[float]:
        try:
            return getattr(self, INDEX_FIELDS[kind])
        except KeyError:
            raise ValueError(f"index kind must be one of {tuple(INDEX_FIELDS)}, got {kind!r}") from None

    def to_export_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, name) for name, key in EXPORT_COLUMNS}

