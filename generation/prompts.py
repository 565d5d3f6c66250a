from __future__ import annotations

from typing import Sequence

FORMAT_RULES = """

==================== ĐỊNH DẠNG BẮT BUỘC ====================

OUTPUT FORMAT:
   PHẢI trả về JSON ARRAY trực tiếp như sau:
   [
     {{"question": "Câu hỏi 1", "answer": "Câu trả lời 1"}},
     {{"question": "Câu hỏi 2", "answer": "Câu trả lời 2"}}
   ]

   KHÔNG wrap trong object, ví dụ {{"data": [...]}} hoặc {{"qaPairs": [...]}} là SAI.
   KHÔNG dùng numeric keys, ví dụ {{"0": {{...}}, "1": {{...}}}} là SAI.
   Mỗi phần tử PHẢI có đủ cả "question" và "answer".

Số lượng: Tạo CHÍNH XÁC {count} cặp Q&A"""

ANTI_DUPLICATION_BLOCK = """
TRÁNH TRÙNG LẶP: Đã có {total} câu hỏi. Dưới đây là {shown} câu gần nhất.
   BẠN PHẢI tạo câu hỏi MỚI, HOÀN TOÀN KHÁC về nội dung và ngữ nghĩa:
{questions}"""

CLOSING = """

=============================================================
NHẮC LẠI: Chỉ trả về ARRAY, KHÔNG wrap trong object!"""

USER_PROMPT = """Dựa trên phần tài liệu pháp luật sau đây, hãy tạo CHÍNH XÁC {count} cặp câu hỏi và câu trả lời MỚI (không trùng với các câu đã có):

==================== NỘI DUNG TÀI LIỆU ====================
{chunk}
===========================================================

QUAN TRỌNG:
- Trả về ARRAY trực tiếp: [{{"question": "...", "answer": "..."}}, ...]
- KHÔNG wrap trong object, KHÔNG có text giải thích, KHÔNG có markdown
- CHỈ có JSON array thuần túy"""


def build_system_prompt(
    base_prompt: str,
    count: int,
    existing_questions: Sequence[str] = (),
    max_context_questions: int = 15,
) -> str:
    """
    User-configurable instructions followed by the fixed output contract and,
    when earlier questions exist, the most recent ones to steer away from.
    """
    prompt = base_prompt + FORMAT_RULES.format(count=count)

    recent = list(existing_questions)[-max_context_questions:] if max_context_questions > 0 else []
    if recent:
        listing = "\n".join(f"   {i}. {q}" for i, q in enumerate(recent, start=1))
        prompt += ANTI_DUPLICATION_BLOCK.format(
            total=len(existing_questions), shown=len(recent), questions=listing
        )

    return prompt + CLOSING


def build_user_prompt(chunk_text: str, count: int, max_chunk_chars: int = 3000) -> str:
    chunk = chunk_text[:max_chunk_chars]
    if len(chunk_text) > max_chunk_chars:
        chunk += "..."
    return USER_PROMPT.format(count=count, chunk=chunk)
