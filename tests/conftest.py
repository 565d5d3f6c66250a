import pytest

_PARAGRAPH = (
    "Điều {n}. Người có hành vi vi phạm quy định tại khoản {n} của Bộ luật này thì tùy theo "
    "tính chất, mức độ vi phạm mà bị xử lý kỷ luật, xử phạt vi phạm hành chính hoặc bị truy cứu "
    "trách nhiệm hình sự. Nếu gây thiệt hại thì phải bồi thường theo quy định của pháp luật. "
    "Cơ quan có thẩm quyền phải giải quyết kịp thời, đúng pháp luật và thông báo cho người "
    "có quyền lợi liên quan biết kết quả giải quyết."
)


@pytest.fixture
def long_legal_text() -> str:
    """Twelve ~400 char articles, enough for several 3000-char chunks."""
    return "\n\n".join(_PARAGRAPH.format(n=n) for n in range(1, 13))
