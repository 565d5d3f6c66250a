from common.config import yaml_config
from generation.orchestrator import QAGenerator


def load_sample_text():
    """Return a short statute excerpt for a live run against the configured backend."""
    return """Điều 8. Khái niệm tội phạm

1. Tội phạm là hành vi nguy hiểm cho xã hội được quy định trong Bộ luật Hình sự, do người có năng lực trách nhiệm hình sự hoặc pháp nhân thương mại thực hiện một cách cố ý hoặc vô ý.

2. Những hành vi tuy có dấu hiệu của tội phạm nhưng tính chất nguy hiểm cho xã hội không đáng kể thì không phải là tội phạm và được xử lý bằng các biện pháp khác."""


def main():
    generator = QAGenerator.from_config(yaml_config)

    print("Running Q&A generation...")
    result = generator.run(load_sample_text(), 3)
    print(f"outcome={result.outcome.value} attempts={result.attempts}")
    for pair in result.pairs:
        print(pair.to_dict())


if __name__ == "__main__":
    main()
