"""
Question-type prompt templates for the generative model.

Each question type maps to an instruction line, an example question text and
an example of the "choices"/"correctAnswers" shape the model must return.
The prompt text is Vietnamese, matching the content language of the quizzes.
"""
from typing import NamedTuple

from quizgen.schemas import BLANK_MARKER, GenerationRequest, QuestionTypeKind

DEFAULT_TONE = "Học thuật"
DEFAULT_DIFFICULTY = "Trung bình"
DEFAULT_QUESTION_EXAMPLE = "Nội dung câu hỏi"


class TypeTemplate(NamedTuple):
    instruction: str
    question_example: str
    answer_shape: str


def _four_choices(a: str, b: str, c: str, d: str, answers: str) -> str:
    return f"""
      "choices": [
        {{"label": "A", "content": "{a}"}},
        {{"label": "B", "content": "{b}"}},
        {{"label": "C", "content": "{c}"}},
        {{"label": "D", "content": "{d}"}}
      ],
      "correctAnswers": {answers}"""


TYPE_TEMPLATES = {
    QuestionTypeKind.MULTIPLE_CHOICE: TypeTemplate(
        "Tạo câu hỏi trắc nghiệm với 4 lựa chọn (A, B, C, D), chỉ có 1 đáp án đúng.",
        DEFAULT_QUESTION_EXAMPLE,
        _four_choices("Nội dung đáp án A", "Nội dung đáp án B",
                      "Nội dung đáp án C", "Nội dung đáp án D", '["A"]'),
    ),
    QuestionTypeKind.TRUE_FALSE: TypeTemplate(
        "Tạo câu hỏi đúng/sai với 2 lựa chọn (Đúng, Sai).",
        DEFAULT_QUESTION_EXAMPLE,
        """
      "choices": [
        {"label": "True", "content": "Đúng"},
        {"label": "False", "content": "Sai"}
      ],
      "correctAnswers": ["True"]""",
    ),
    QuestionTypeKind.MULTIPLE_RESPONSE: TypeTemplate(
        "Tạo câu hỏi với 4 lựa chọn (A, B, C, D), BẮT BUỘC có từ 2 đến 3 đáp án đúng.",
        DEFAULT_QUESTION_EXAMPLE,
        _four_choices("Nội dung đáp án A", "Nội dung đáp án B",
                      "Nội dung đáp án C", "Nội dung đáp án D", '["A", "C"]'),
    ),
    QuestionTypeKind.MATCHING: TypeTemplate(
        "Tạo câu hỏi ghép đôi với 4 cặp thuật ngữ - định nghĩa hoặc nguyên nhân - kết quả. "
        "Mỗi lựa chọn là một cặp ghép đúng.",
        DEFAULT_QUESTION_EXAMPLE,
        _four_choices("Thuật ngữ 1 - Định nghĩa 1", "Thuật ngữ 2 - Định nghĩa 2",
                      "Thuật ngữ 3 - Định nghĩa 3", "Thuật ngữ 4 - Định nghĩa 4",
                      '["A", "B", "C", "D"]'),
    ),
    QuestionTypeKind.COMPLETION: TypeTemplate(
        f"Tạo câu hỏi điền khuyết: một câu có chỗ trống đánh dấu bằng {BLANK_MARKER} "
        "(5 dấu gạch dưới) và 4 lựa chọn từ/cụm từ để điền vào chỗ trống.",
        f"Công thức tính diện tích hình tròn là S = π × {BLANK_MARKER}",
        _four_choices("r", "r²", "2r", "d", '["B"]'),
    ),
}

EMPHASIS = {
    QuestionTypeKind.MULTIPLE_RESPONSE: (
        "- ĐẶC BIỆT: Mỗi câu hỏi MULTIPLE_RESPONSE phải có nhiều đáp án đúng cùng lúc; "
        "correctAnswers PHẢI có ít nhất 2 phần tử. "
        "Ví dụ: \"Những đặc điểm nào sau đây là đúng về X?\""
    ),
    QuestionTypeKind.COMPLETION: (
        f"- ĐẶC BIỆT: Mỗi câu hỏi COMPLETION PHẢI chứa {BLANK_MARKER} (5 dấu gạch dưới) "
        f"tại vị trí chỗ trống. Ví dụ: \"Phương pháp {BLANK_MARKER} được dùng để giải quyết vấn đề này\""
    ),
}


def get_type_template(question_type: QuestionTypeKind) -> TypeTemplate:
    # Unmapped types use the multiple-choice template
    return TYPE_TEMPLATES.get(question_type, TYPE_TEMPLATES[QuestionTypeKind.MULTIPLE_CHOICE])


def build_prompt(request: GenerationRequest) -> str:
    template = get_type_template(request.question_type)
    emphasis = EMPHASIS.get(request.question_type, "")

    return f"""Bạn là một chuyên gia soạn câu hỏi kiểm tra.
Dựa trên nội dung sau, hãy tạo {request.question_count} câu hỏi về chủ đề "{request.subject}".

NỘI DUNG:
{request.content}

YÊU CẦU:
- {template.instruction}
- Độ khó: {request.difficulty or DEFAULT_DIFFICULTY}
- Giọng văn: {request.tone or DEFAULT_TONE}
- Câu hỏi phải chính xác, rõ ràng và dựa trên nội dung đã cho
- Mỗi câu hỏi có giải thích ngắn gọn cho đáp án đúng, chỉ dựa trên khái niệm/nguyên lý, KHÔNG nhắc đến số trang, slide hay tài liệu
- Các lựa chọn sai phải hợp lý, không quá dễ loại trừ
{emphasis}

Chỉ trả về JSON hợp lệ, KHÔNG giải thích, KHÔNG thêm văn bản nào khác.

ĐỊNH DẠNG JSON:
{{
  "questions": [
    {{
      "question": "{template.question_example}",{template.answer_shape},
      "explanation": "Giải thích ngắn gọn vì sao đáp án đúng"
    }}
  ]
}}
"""
