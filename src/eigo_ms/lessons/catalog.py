"""
Lesson catalog: the topics offered per category, with Japanese titles for
the sidebar.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from eigo_ms.core.errors import InvalidInputError
from eigo_ms.lessons.models import LessonCategory, LessonTopic


def _topics(*pairs: Tuple[str, str]) -> List[LessonTopic]:
    return [LessonTopic(english=en, japanese=ja) for en, ja in pairs]


CATEGORIZED_LESSONS: Dict[LessonCategory, List[LessonTopic]] = {
    LessonCategory.GENERAL: _topics(
        ("The History of Tea", "お茶の歴史"),
        ("Remote Work and Productivity", "リモートワークと生産性"),
        ("The Benefits of Regular Exercise", "定期的な運動の利点"),
        ("Urban Gardening", "都市型ガーデニング"),
        ("The Rise of Electric Vehicles", "電気自動車の台頭"),
        ("Sleep and Memory", "睡眠と記憶"),
        ("Traveling on a Budget", "節約旅行"),
        ("Artificial Intelligence in Daily Life", "日常生活における人工知能"),
    ),
    LessonCategory.BUSINESS: _topics(
        ("Scheduling a Meeting", "会議の日程調整"),
        ("Negotiating a Contract", "契約交渉"),
        ("Giving a Project Update", "プロジェクトの進捗報告"),
        ("Handling a Customer Complaint", "顧客からの苦情対応"),
        ("Onboarding a New Employee", "新入社員の受け入れ"),
        ("Preparing a Quarterly Budget", "四半期予算の準備"),
        ("Planning a Product Launch", "新製品の発売計画"),
        ("Requesting Time Off", "休暇の申請"),
    ),
    LessonCategory.DAILY: _topics(
        ("Ordering at a Restaurant", "レストランでの注文"),
        ("Asking for Directions", "道を尋ねる"),
        ("Checking In at a Hotel", "ホテルのチェックイン"),
        ("Shopping for Clothes", "洋服の買い物"),
        ("Making Weekend Plans", "週末の予定を立てる"),
        ("Visiting the Doctor", "病院での診察"),
        ("Returning an Item", "商品の返品"),
        ("Talking with a Neighbor", "近所の人との会話"),
    ),
    LessonCategory.TOEIC_PART1: _topics(
        ("Office Work", "オフィスでの作業"),
        ("Outdoor Scenes", "屋外の風景"),
        ("Restaurants and Cafes", "レストランとカフェ"),
        ("Transportation", "交通機関"),
        ("Shopping", "買い物"),
        ("Construction and Repairs", "工事と修理"),
    ),
    LessonCategory.TOEIC_PART2: _topics(
        ("Wh- Questions", "WH疑問文"),
        ("Yes/No Questions", "Yes/No疑問文"),
        ("Requests and Offers", "依頼と申し出"),
        ("Suggestions", "提案"),
        ("Statements", "平叙文"),
        ("Choice Questions", "選択疑問文"),
    ),
    LessonCategory.TOEIC_PART3: _topics(
        ("Office Conversations", "オフィスでの会話"),
        ("Customer Service", "カスタマーサービス"),
        ("Travel Arrangements", "出張の手配"),
        ("Three-Speaker Meetings", "3人での打ち合わせ"),
        ("Store and Product Inquiries", "店舗・商品の問い合わせ"),
        ("Scheduling Problems", "スケジュールの問題"),
    ),
    LessonCategory.TOEIC_PART4: _topics(
        ("Announcements", "アナウンス"),
        ("Telephone Messages", "電話のメッセージ"),
        ("Advertisements", "広告"),
        ("Tour Guides", "ツアーガイド"),
        ("News Reports", "ニュース報道"),
        ("Meeting Excerpts", "会議の一部"),
    ),
    LessonCategory.TOEIC_PART5: _topics(
        ("Parts of Speech", "品詞"),
        ("Verb Tenses", "動詞の時制"),
        ("Prepositions", "前置詞"),
        ("Conjunctions", "接続詞"),
        ("Relative Pronouns", "関係代名詞"),
        ("Business Vocabulary", "ビジネス語彙"),
    ),
    LessonCategory.TOEIC_PART6: _topics(
        ("Emails", "Eメール"),
        ("Memos", "社内メモ"),
        ("Notices", "お知らせ"),
        ("Letters", "手紙"),
        ("Advertisements", "広告"),
        ("Articles", "記事"),
    ),
    LessonCategory.TOEIC_PART7: _topics(
        ("Single Passage: Email", "シングルパッセージ: Eメール"),
        ("Single Passage: Advertisement", "シングルパッセージ: 広告"),
        ("Single Passage: Article", "シングルパッセージ: 記事"),
        ("Double Passage: Email and Schedule", "ダブルパッセージ: Eメールと予定表"),
        ("Double Passage: Notice and Form", "ダブルパッセージ: お知らせと申込書"),
        ("Text Message Chain", "テキストメッセージのやり取り"),
    ),
}

# Sidebar tabs in display order
CATEGORY_TABS: List[Tuple[LessonCategory, str]] = [
    (LessonCategory.GENERAL, "General"),
    (LessonCategory.BUSINESS, "Business"),
    (LessonCategory.DAILY, "Daily"),
    (LessonCategory.TOEIC_PART1, "Part 1"),
    (LessonCategory.TOEIC_PART2, "Part 2"),
    (LessonCategory.TOEIC_PART3, "Part 3"),
    (LessonCategory.TOEIC_PART4, "Part 4"),
    (LessonCategory.TOEIC_PART5, "Part 5"),
    (LessonCategory.TOEIC_PART6, "Part 6"),
    (LessonCategory.TOEIC_PART7, "Part 7"),
]


def parse_category(value: str) -> LessonCategory:
    """
    Raises:
        InvalidInputError: If value is not a known category.
    """
    try:
        return LessonCategory(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unsupported category: {value}") from None


def topics_for(category: LessonCategory) -> List[LessonTopic]:
    return list(CATEGORIZED_LESSONS.get(category, []))


def get_topic(category: LessonCategory, index: int) -> LessonTopic:
    """
    Topic by position within its category.

    Raises:
        InvalidInputError: If index is out of range.
    """
    topics = CATEGORIZED_LESSONS.get(category, [])
    if not 0 <= index < len(topics):
        raise InvalidInputError(
            f"Topic index {index} out of range for {category.value} (0-{len(topics) - 1})",
            details={"category": category.value, "count": len(topics)},
        )
    return topics[index]


def catalog_dict() -> List[dict]:
    """The whole catalog in tab order, JSON-ready."""
    return [
        {
            "category": category.value,
            "label": label,
            "topics": [t.model_dump(by_alias=True) for t in CATEGORIZED_LESSONS[category]],
        }
        for category, label in CATEGORY_TABS
    ]
