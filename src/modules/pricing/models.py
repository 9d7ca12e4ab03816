"""Grade, course and campaign enumerations used for pricing."""

from enum import StrEnum


class Grade(StrEnum):
    """School grade, in ascending order."""

    ELEMENTARY_3 = "小3"
    ELEMENTARY_4 = "小4"
    ELEMENTARY_5 = "小5"
    ELEMENTARY_6 = "小6"
    JUNIOR_HIGH_1 = "中1"
    JUNIOR_HIGH_2 = "中2"
    JUNIOR_HIGH_3 = "中3"
    HIGH_SCHOOL_1 = "高1"
    HIGH_SCHOOL_2 = "高2"
    HIGH_SCHOOL_3 = "高3"

    @property
    def order(self) -> int:
        return GRADE_ORDER.index(self)


GRADE_ORDER: tuple[Grade, ...] = tuple(Grade)


class GradeCategory(StrEnum):
    """Pricing category; several grades share one price."""

    ELEMENTARY_3_5 = "小3-小5"
    ELEMENTARY_6 = "小6"
    JUNIOR_HIGH_1_2 = "中1/2"
    JUNIOR_HIGH_3_HIGH_1 = "中3/高1"
    HIGH_SCHOOL_2_3 = "高2/高3"


GRADE_CATEGORY_MAP: dict[Grade, GradeCategory] = {
    Grade.ELEMENTARY_3: GradeCategory.ELEMENTARY_3_5,
    Grade.ELEMENTARY_4: GradeCategory.ELEMENTARY_3_5,
    Grade.ELEMENTARY_5: GradeCategory.ELEMENTARY_3_5,
    Grade.ELEMENTARY_6: GradeCategory.ELEMENTARY_6,
    Grade.JUNIOR_HIGH_1: GradeCategory.JUNIOR_HIGH_1_2,
    Grade.JUNIOR_HIGH_2: GradeCategory.JUNIOR_HIGH_1_2,
    Grade.JUNIOR_HIGH_3: GradeCategory.JUNIOR_HIGH_3_HIGH_1,
    Grade.HIGH_SCHOOL_1: GradeCategory.JUNIOR_HIGH_3_HIGH_1,
    Grade.HIGH_SCHOOL_2: GradeCategory.HIGH_SCHOOL_2_3,
    Grade.HIGH_SCHOOL_3: GradeCategory.HIGH_SCHOOL_2_3,
}


def grade_category(grade: Grade | str) -> GradeCategory:
    """Grade -> pricing category (total over Grade)."""
    return GRADE_CATEGORY_MAP[Grade(grade)]


class Course(StrEnum):
    """Recurring (monthly tuition) course."""

    HIGH_STANDARD = "ハイ"
    HIGH_STANDARD_PLUS = "ハイPLUS"
    EXCELLENCE = "エク"
    EXECUTIVE = "エグゼ"


class LectureCourseName(StrEnum):
    """Intensive-course tier."""

    HIGH_STANDARD = "ハイスタンダード"
    EXCELLENCE = "エクセレンス"
    EXECUTIVE = "エグゼクティブ"


class LectureLabel(StrEnum):
    """Season / kind of an intensive course."""

    SPRING = "春期"
    SUMMER = "夏期"
    WINTER = "冬期"
    EXAM_PREP = "受験直前特訓"
    OTHER = "その他"


class Campaign(StrEnum):
    """Promotional modifier applied when a contract is created."""

    ENROLLMENT_FEE_FREE = "入塾金無料"
    SEASONAL_COURSE = "講習キャンペーン"
    ENROLLMENT_FEE_PAID = "入塾金支払い済み"


# Campaigns that waive the enrollment fee.
ENROLLMENT_FEE_WAIVED = frozenset(
    {Campaign.ENROLLMENT_FEE_FREE, Campaign.SEASONAL_COURSE, Campaign.ENROLLMENT_FEE_PAID}
)
