"""
Canned lesson payloads for the fallback provider.

Each payload has exactly the keys the category's schema asks the real
provider for (camelCase, no ``category``), so it goes through the same
validation and formatting path as generated content. The topic is woven
into the text so different topics are distinguishable in the UI.
"""
from __future__ import annotations

import html
from typing import Any, Callable, Dict

from eigo_ms.lessons.models import LessonCategory


def _general(topic: str) -> Dict[str, Any]:
    return {
        "englishText": (
            f"Today we take a closer look at {topic}. Many people think they already know the basics, "
            "but there is always more to learn. Experts agree that small changes can make a big "
            "difference over time. If you keep an open mind, you might be surprised by what you find. "
            "In the long run, curiosity pays off."
        ),
        "japaneseText": (
            f"今日は「{topic}」について詳しく見ていきます。多くの人は基本をすでに知っていると思っていますが、"
            "学ぶことは常にあります。専門家は、小さな変化が時間とともに大きな違いを生むことに同意しています。"
            "心を開いていれば、見つけたものに驚くかもしれません。長い目で見れば、好奇心は報われます。"
        ),
        "vocabulary": [
            {"word": "take a closer look", "meaning": "詳しく見る",
             "example": "Let's take a closer look at the numbers."},
            {"word": "make a big difference", "meaning": "大きな違いを生む",
             "example": "A short walk every day can make a big difference."},
            {"word": "keep an open mind", "meaning": "偏見を持たない",
             "example": "Try to keep an open mind about the new plan."},
            {"word": "in the long run", "meaning": "長い目で見れば",
             "example": "Saving money helps in the long run."},
            {"word": "pay off", "meaning": "報われる、成果が出る",
             "example": "All her hard work finally paid off."},
        ],
        "grammar": [
            {"point": "Present simple for general truths",
             "explanation": "一般的な事実や習慣を表すときは現在形を使います。",
             "exampleSentence": "In the long run, curiosity pays off."},
            {"point": "Conditional with might",
             "explanation": "if節と might を組み合わせて、可能性のある結果を表します。",
             "exampleSentence": "If you keep an open mind, you might be surprised by what you find."},
            {"point": "Agree that + clause",
             "explanation": "agree that の後に節を続けて、同意の内容を述べます。",
             "exampleSentence": "Experts agree that small changes can make a big difference over time."},
        ],
    }


def _business(topic: str) -> Dict[str, Any]:
    return {
        "englishText": (
            f"Speaker A: Thanks for making time today. I wanted to touch base about {topic}. "
            "Speaker B: Of course. Where do we stand at the moment? "
            "Speaker A: We are on track, but the deadline is tight. Could we move the review to Friday? "
            "Speaker B: That works for me. I'll send out a calendar invite this afternoon. "
            "Speaker A: Great. Let's keep each other in the loop."
        ),
        "japaneseText": (
            f"A: 今日は時間を取ってくれてありがとう。「{topic}」について確認したかったんです。"
            "B: もちろんです。今どんな状況ですか？ "
            "A: 予定通り進んでいますが、締め切りが厳しいです。レビューを金曜日に移せますか？ "
            "B: 大丈夫です。今日の午後にカレンダーの招待を送ります。 "
            "A: よかった。お互いに情報を共有し続けましょう。"
        ),
        "vocabulary": [
            {"word": "touch base", "meaning": "連絡を取る、確認する",
             "example": "Let's touch base next week."},
            {"word": "on track", "meaning": "予定通りに",
             "example": "The project is on track for a June release."},
            {"word": "send out", "meaning": "送付する",
             "example": "We will send out the agenda tomorrow."},
            {"word": "keep someone in the loop", "meaning": "情報を共有し続ける",
             "example": "Please keep me in the loop about the budget."},
        ],
        "grammar": [
            {"point": "Could for polite requests",
             "explanation": "Could we ...? は丁寧な依頼や提案に使います。",
             "exampleSentence": "Could we move the review to Friday?"},
            {"point": "Will for spontaneous decisions",
             "explanation": "その場で決めたことには will を使います。",
             "exampleSentence": "I'll send out a calendar invite this afternoon."},
            {"point": "Let's + base verb",
             "explanation": "Let's の後は動詞の原形で、提案を表します。",
             "exampleSentence": "Let's keep each other in the loop."},
        ],
    }


def _daily(topic: str) -> Dict[str, Any]:
    return {
        "englishText": (
            f"Speaker A: Hi there! Do you have a minute? I have a question about {topic}. "
            "Speaker B: Sure, what's up? "
            "Speaker A: I'm not sure where to start. What would you recommend? "
            "Speaker B: Honestly, I'd take it one step at a time. "
            "Speaker A: That makes sense. Thanks a lot! "
            "Speaker B: No problem. Let me know how it goes."
        ),
        "japaneseText": (
            f"A: こんにちは！ちょっといいですか？「{topic}」について質問があるんです。"
            "B: もちろん、どうしたの？ "
            "A: 何から始めればいいかわからなくて。何がおすすめですか？ "
            "B: 正直なところ、一歩ずつやるのがいいと思うよ。 "
            "A: なるほど。ありがとう！ "
            "B: どういたしまして。どうなったか教えてね。"
        ),
        "vocabulary": [
            {"word": "Do you have a minute?", "meaning": "ちょっといいですか？",
             "example": "Do you have a minute to talk?"},
            {"word": "what's up", "meaning": "どうしたの",
             "example": "Hey, what's up? You look worried."},
            {"word": "one step at a time", "meaning": "一歩ずつ",
             "example": "Learning a language is done one step at a time."},
            {"word": "That makes sense.", "meaning": "なるほど。",
             "example": "Oh, that makes sense now."},
        ],
        "grammar": [
            {"point": "Would for advice",
             "explanation": "What would you recommend? は助言を丁寧に求める表現です。",
             "exampleSentence": "What would you recommend?"},
            {"point": "Not sure + wh- to infinitive",
             "explanation": "where to start のように疑問詞 + to 不定詞で「何を～すべきか」を表します。",
             "exampleSentence": "I'm not sure where to start."},
            {"point": "Let me know + wh- clause",
             "explanation": "Let me know の後に間接疑問文を続けます。",
             "exampleSentence": "Let me know how it goes."},
        ],
    }


def _part1(topic: str) -> Dict[str, Any]:
    return {
        "imagePrompt": f"A realistic photograph related to {topic}: a woman typing on a laptop at a desk "
                       "near a window, with a coffee cup beside her.",
        "audioScripts": [
            "The woman is typing on a laptop.",
            "The woman is pouring some coffee.",
            "The woman is closing the window.",
            "The woman is standing in a hallway.",
        ],
        "correctAnswer": "A",
        "explanation": "女性はノートパソコンで入力しているので (A) が正解です。他の選択肢は写真の様子と一致しません。",
    }


def _part2(topic: str) -> Dict[str, Any]:
    question = "When does the next training session start?"
    choices = [
        "In the main conference room.",
        "At ten o'clock tomorrow.",
        "Yes, it was very useful.",
    ]
    return {
        "questionScript": question,
        "choices": choices,
        "correctAnswer": "B",
        "explanation": f"({topic}) When で時間を尋ねているので、時刻を答えている (B) が正解です。",
        "transcript": "\n".join([question] + [f"({chr(65 + i)}) {c}" for i, c in enumerate(choices)]),
    }


def _part3(topic: str) -> Dict[str, Any]:
    return {
        "conversationScript": (
            "W: Hi, I'm calling about the order I placed last week. It still hasn't arrived. "
            "M: I'm sorry to hear that. Could you give me your order number? "
            "W: Sure, it's 4-5-1-9. "
            "M: Thank you. It looks like the package was delayed at our warehouse. "
            "I'll ship it by express delivery at no extra charge."
        ),
        "questions": [
            {"question": "Why is the woman calling?",
             "choices": ["To place an order", "To ask about a delivery",
                         "To cancel a subscription", "To change her address"],
             "correctAnswer": "B"},
            {"question": "What does the man ask for?",
             "choices": ["A receipt", "A phone number", "An order number", "A credit card"],
             "correctAnswer": "C"},
            {"question": "What does the man offer to do?",
             "choices": ["Give a refund", "Send a catalog",
                         "Ship the item faster for free", "Call back later"],
             "correctAnswer": "C"},
        ],
        "explanation": (
            f"テーマ「{topic}」。女性は届いていない注文について電話しています (B)。"
            "男性は注文番号を尋ね (C)、追加料金なしで速達を申し出ています (C)。"
        ),
    }


def _part4(topic: str) -> Dict[str, Any]:
    return {
        "talkScript": (
            "W: Good morning, everyone, and welcome to the Riverside Museum. Today's tour will last "
            "about ninety minutes. We'll start in the modern art gallery on the second floor. "
            "Please remember that photography is not allowed inside the galleries. "
            "The gift shop near the entrance is open until six."
        ),
        "questions": [
            {"question": "Where is the talk taking place?",
             "choices": ["At a library", "At a museum", "At a train station", "At a hotel"],
             "correctAnswer": "B"},
            {"question": "How long will the tour last?",
             "choices": ["Thirty minutes", "One hour", "Ninety minutes", "Two hours"],
             "correctAnswer": "C"},
            {"question": "What are listeners asked not to do?",
             "choices": ["Eat in the galleries", "Take photographs",
                         "Use the elevator", "Touch the paintings"],
             "correctAnswer": "B"},
        ],
        "explanation": (
            f"テーマ「{topic}」。Riverside Museum へようこそと言っているので (B)、ツアーは約90分 (C)、"
            "館内での写真撮影は禁止されています (B)。"
        ),
    }


def _part5(topic: str) -> Dict[str, Any]:
    return {
        "question": "The manager asked all employees to submit their reports ------- Friday.",
        "choices": ["by", "until", "since", "during"],
        "correctAnswer": "A",
        "explanation": (
            f"({topic}) 期限を表す前置詞は by です。until は継続、since は起点、during は期間を表すため不適切です。"
        ),
    }


def _part6(topic: str) -> Dict[str, Any]:
    return {
        "text": (
            "To: All Staff\nSubject: Office Renovation\n\n"
            "Starting next Monday, the third floor will be closed [1] renovation. "
            "Employees on that floor will [2] to temporary desks on the fifth floor. "
            "We expect the work to be [3] by the end of the month. "
            "[4] you for your patience during this time."
        ),
        "questions": [
            {"questionNumber": 1, "choices": ["for", "at", "with", "of"], "correctAnswer": "A"},
            {"questionNumber": 2, "choices": ["move", "moving", "be moved", "have moving"],
             "correctAnswer": "C"},
            {"questionNumber": 3, "choices": ["complete", "completing", "completion", "completed"],
             "correctAnswer": "D"},
            {"questionNumber": 4, "choices": ["Thank", "Thanks", "Thanking", "Thanked"],
             "correctAnswer": "A"},
        ],
        "explanation": (
            f"テーマ「{topic}」。[1] 目的を表す for、[2] 受動態 be moved、[3] be completed で「完了する」、"
            "[4] Thank you for ~ の定型表現です。"
        ),
    }


def _part7(topic: str) -> Dict[str, Any]:
    return {
        "passage": (
            "Greenfield Community Center: Spring Classes\n"
            "Registration for spring classes opens on March 1. Classes include photography, cooking and "
            "beginner Spanish. Members receive a 20 percent discount.\n"
            "---PASSAGE 2---\n"
            "Dear Ms. Alvarez,\nThank you for registering for Beginner Spanish. As a member, your fee "
            "has been reduced. The first class meets on March 15 in Room 2."
        ),
        "passageType": "double",
        "questions": [
            {"question": "When does registration open?",
             "choices": ["March 1", "March 15", "April 1", "April 15"],
             "correctAnswer": "A"},
            {"question": "Why was Ms. Alvarez's fee reduced?",
             "choices": ["She registered early", "She is a member",
                         "She took two classes", "She used a coupon"],
             "correctAnswer": "B"},
        ],
        "explanation": (
            f"テーマ「{topic}」。1つ目の文書に登録開始は3月1日とあります (A)。"
            "会員は20%割引を受けられ、2つ目の文書で会員として料金が下がったとあります (B)。"
        ),
    }


_BUILDERS: Dict[LessonCategory, Callable[[str], Dict[str, Any]]] = {
    LessonCategory.GENERAL: _general,
    LessonCategory.BUSINESS: _business,
    LessonCategory.DAILY: _daily,
    LessonCategory.TOEIC_PART1: _part1,
    LessonCategory.TOEIC_PART2: _part2,
    LessonCategory.TOEIC_PART3: _part3,
    LessonCategory.TOEIC_PART4: _part4,
    LessonCategory.TOEIC_PART5: _part5,
    LessonCategory.TOEIC_PART6: _part6,
    LessonCategory.TOEIC_PART7: _part7,
}


def sample_payload(category: LessonCategory, topic: str) -> Dict[str, Any]:
    """A fresh canned payload for category; callers may mutate it."""
    return _BUILDERS[category](topic)


def placeholder_svg(prompt: str) -> str:
    """A plain SVG card showing the image prompt, in place of a photograph."""
    caption = html.escape(prompt[:120])
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="1024" height="1024" viewBox="0 0 1024 1024">'
        '<rect width="1024" height="1024" fill="#e2e8f0"/>'
        '<foreignObject x="64" y="400" width="896" height="224">'
        '<div xmlns="http://www.w3.org/1999/xhtml" '
        'style="font:32px sans-serif;color:#334155;text-align:center">'
        f"{caption}</div></foreignObject></svg>"
    )
