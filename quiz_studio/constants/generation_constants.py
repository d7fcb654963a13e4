"""Constants for the remote question-generation endpoint."""

COMPLETION_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
COMPLETION_TEMPERATURE: float = 0.7
COMPLETION_MAX_TOKENS: int = 2000
GENERATION_TIMEOUT_SECONDS: float = 30.0
MAX_GENERATED_QUESTIONS: int = 50

# (model id, display name) pairs offered to quiz authors.
AVAILABLE_MODELS: tuple[tuple[str, str], ...] = (
    ("meta-llama/llama-4-scout-17b-16e-instruct", "Llama 4 Scout 17B"),
    ("meta-llama/llama-4-maverick-17b-128e-instruct", "Llama 4 Maverick 17B"),
    ("meta-llama/llama-guard-4-12b", "Llama Guard 4 12B"),
    ("meta-llama/llama-prompt-guard-2-22m", "Llama Prompt Guard 2 22M"),
    ("openai/gpt-oss-120b", "GPT OSS 120B"),
    ("openai/gpt-oss-20b", "GPT OSS 20B"),
    ("qwen/qwen3-32b", "Qwen3 32B"),
    ("meta-llama/llama-prompt-guard-2-86m", "Llama Prompt Guard 2 86M"),
)
DEFAULT_MODEL: str = AVAILABLE_MODELS[0][0]

SOURCE_AI: str = "ai"
SOURCE_FALLBACK: str = "fallback"

MESSAGE_NOT_CONFIGURED: str = "Using sample questions (AI API key not configured)"
MESSAGE_REQUEST_FAILED: str = "AI generation failed, using sample questions"
MESSAGE_NO_CONTENT: str = "No AI response received, using sample questions"
MESSAGE_INVALID_FORMAT: str = "Invalid AI response format, using sample questions"
MESSAGE_NO_VALID_QUESTIONS: str = "No valid AI questions received, using sample questions"
MESSAGE_ERROR: str = "Error occurred, using sample questions"
MESSAGE_SUCCESS_TEMPLATE: str = "Generated {count} AI questions successfully"
