import json
from unittest.mock import MagicMock


def model_response(questions) -> str:
    """Text the model would return for the given question dicts."""
    return json.dumps({"questions": questions}, ensure_ascii=False)


def make_question(question="Câu hỏi?", labels=("A", "B", "C", "D"), answers=("A",), explanation="Vì vậy."):
    return {
        "question": question,
        "choices": [{"label": label, "content": f"Đáp án {label}"} for label in labels],
        "correctAnswers": list(answers),
        "explanation": explanation,
    }


def make_pdf(text: str) -> bytes:
    """Build a one-page PDF showing text in Helvetica."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


def mock_openai_client(*responses: str) -> MagicMock:
    """OpenAI client double whose chat completions return responses in order."""
    client = MagicMock()
    completions = client.with_options.return_value.chat.completions
    completions.create.side_effect = [
        MagicMock(choices=[MagicMock(message=MagicMock(content=text))]) for text in responses
    ]
    return client
