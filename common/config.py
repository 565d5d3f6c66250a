from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = """Bạn là một chuyên gia pháp luật. Nhiệm vụ của bạn là tạo các cặp câu hỏi và câu trả lời (Q&A) từ tài liệu pháp luật được cung cấp.

QUAN TRỌNG - BẮT BUỘC:
1. Ngôn ngữ: Tiếng Việt trang trọng, chính xác về mặt pháp lý
2. Nội dung: Câu hỏi phải là những gì người dùng thường hỏi về luật, câu trả lời phải chi tiết và trích dẫn logic từ tài liệu"""


class AppConfig(BaseModel):
    data_dir: Path = Path("data/uploads")
    output_dir: Path = Path("data/output")
    log_level: str = "INFO"


class LLMConfig(BaseModel):
    provider: str = Field(default="ollama", pattern="^(ollama|langchain)$")
    endpoint: str = "http://localhost:11434/api/generate"
    model_name: str = "ubkt:latest"
    temperature: float = 0.2
    timeout: int = 300


class TikaConfig(BaseModel):
    enabled: bool = True
    endpoint: str = "http://localhost:9998/tika"
    timeout: int = 120


class ChunkingConfig(BaseModel):
    max_chunk_chars: int = Field(default=3000, ge=1)


class GenerationConfig(BaseModel):
    max_attempts: int = Field(default=10, ge=1)
    min_text_chars: int = 100
    min_chunk_chars: int = 100
    max_prompt_chunk_chars: int = Field(default=3000, ge=1)
    max_context_questions: int = Field(default=15, ge=0)
    # empirically chosen, recalibrate against real corpora
    duplicate_length_ratio: float = Field(default=0.3, ge=0.0, le=1.0)
    min_request_divisor: int = Field(default=5, ge=1)

    system_prompt: str | None = None
    system_prompt_file: Path | None = None

    def resolve_system_prompt(self) -> str:
        """
        Custom prompt wins over the prompt file, which wins over the built-in default.
        Blank values fall through.
        """
        if self.system_prompt and self.system_prompt.strip():
            return self.system_prompt
        if self.system_prompt_file is not None:
            text = self.system_prompt_file.read_text(encoding="utf-8")
            if text.strip():
                return text
        return DEFAULT_SYSTEM_PROMPT


class GlobalYAMLConfig(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    tika: TikaConfig = Field(default_factory=TikaConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)


class EnvOverrides(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ollama_endpoint: str | None = Field(default=None, validation_alias="OLLAMA_ENDPOINT")
    ollama_model: str | None = Field(default=None, validation_alias="OLLAMA_MODEL")
    tika_endpoint: str | None = Field(default=None, validation_alias="TIKA_ENDPOINT")
    log_level: str | None = Field(default=None, validation_alias="QAGEN_LOG_LEVEL")


def apply_env_overrides(cfg: GlobalYAMLConfig, env: EnvOverrides) -> GlobalYAMLConfig:
    if env.ollama_endpoint:
        cfg.llm.endpoint = env.ollama_endpoint
    if env.ollama_model:
        cfg.llm.model_name = env.ollama_model
    if env.tika_endpoint:
        cfg.tika.endpoint = env.tika_endpoint
    if env.log_level:
        cfg.app.log_level = env.log_level
    return cfg


def load_yaml_config(path: Path | None = None) -> GlobalYAMLConfig:
    path = Path(path or os.getenv("QAGEN_CONFIG", "config/config.yaml"))
    if not path.exists():
        return GlobalYAMLConfig()
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return GlobalYAMLConfig(**raw)


yaml_config = apply_env_overrides(load_yaml_config(), EnvOverrides())
