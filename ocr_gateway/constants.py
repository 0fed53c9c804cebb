"""All magic values live here — no inline literals anywhere else."""

# Upload limits
DEFAULT_MAX_UPLOAD_BYTES = 4 * 1024 * 1024
IMAGE_MIME_PREFIX = "image/"
UPLOAD_FIELD = "image"

# HTTP server
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000

# Provider families
FAMILY_AZURE_VISION = "azure-vision"
FAMILY_AZURE_VISION_LEGACY = "azure-vision-legacy"
FAMILY_AZURE_OPENAI = "azure-openai"
FAMILY_OPENAI = "openai"
FAMILY_ANTHROPIC = "anthropic"

DEFAULT_OCR_PROVIDER = FAMILY_AZURE_VISION
DEFAULT_VISION_PROVIDER = FAMILY_AZURE_OPENAI

# Legacy OPENAI_PROVIDER values → family
LEGACY_OPENAI_PROVIDERS = {"azure": FAMILY_AZURE_OPENAI, "openai": FAMILY_OPENAI}

# Azure AI Vision (Image Analysis 4.0 and Computer Vision v3.2)
AZURE_VISION_API_VERSION = "2024-02-01"
AZURE_VISION_MODEL_VERSION = "latest"
AZURE_VISION_ANALYZE_PATH = "computervision/imageanalysis:analyze"
AZURE_VISION_LEGACY_OCR_PATH = "vision/v3.2/ocr"
AZURE_VISION_FEATURES = "read"
AZURE_VISION_LANGUAGE = "en"
AZURE_KEY_HEADER = "Ocp-Apim-Subscription-Key"
AZURE_VISION_TIMEOUT: float = 30.0

# Vision-chat models
OPENAI_VISION_MODEL = "gpt-4o"
CLAUDE_VISION_MODEL = "claude-opus-4-6"
CLAUDE_MAX_TOKENS = 1024

METER_SYSTEM_PROMPT = (
    "You are an AI assistant specialized in reading utility meters from images. "
    "Extract the primary meter reading value and the meter's serial number. "
    "Respond ONLY with a valid JSON object containing 'meterValue' and 'serialNumber' keys. "
    "If a value cannot be found, use null for that key."
)
METER_USER_PROMPT = (
    "Analyze the image and provide the meter value and serial number in JSON format."
)

# Structured-field keys and degraded-parse sentinel
KEY_METER_VALUE = "meterValue"
KEY_SERIAL_NUMBER = "serialNumber"
PARSE_ERROR_SENTINEL = "Parse Error"

# Mock mode
MOCK_TEXT_LINES = (
    "Mock Server-Side OCR Result 1",
    "Mock Server-Side Result Line 2",
)
MOCK_METER_VALUE = "MOCK_12345.67"
MOCK_SERIAL_NUMBER = "MOCK_SN_987XYZ"
MOCK_TEXT_LINES_DELAY: float = 0.5
MOCK_STRUCTURED_FIELDS_DELAY: float = 0.8

# Pixel transform
LUMA_RED = 0.30
LUMA_GREEN = 0.59
LUMA_BLUE = 0.11
BINARIZE_THRESHOLD = 128
PREPROCESSED_FORMAT = "PNG"
PREPROCESSED_MIME = "image/png"

# Log messages
MSG_GATEWAY_STARTING = "Starting image analysis gateway on %s:%d"
MSG_MOCK_REQUEST = "Mock results requested (%s)"
MSG_VALIDATION_REJECTED = "Rejected upload: %s"
MSG_PREPROCESSING = "Preprocessing image (binarize=%s)"
MSG_DISPATCHING = "→ %s"
MSG_REQUEST_DONE = "✓ %s analysis done (%.2fs)"
MSG_REQUEST_FAILED = "✗ %s analysis failed (%.2fs): %s"
MSG_PROVIDER_FAILED = "%s request failed: status=%s detail=%s"
MSG_DEGRADED_PARSE = "Model reply was not valid JSON, using fallback extraction: %r"
MSG_UNEXPECTED_ERROR = "Unexpected error during image analysis"
MSG_REQUEST_REJECTED = "Rejected malformed request: %s"

# Caller-facing error messages
MSG_ERR_NO_IMAGE = "No image file uploaded."
MSG_ERR_BAD_REQUEST = "Invalid request: %s"
MSG_ERR_INVALID_TYPE = "Invalid file type. Please select an image."
MSG_ERR_TOO_LARGE = "File size exceeds the limit of %s MB."
MSG_ERR_CONFIG = "Image analysis service is not configured correctly."
MSG_ERR_DECODE = "Uploaded file could not be decoded as an image."
MSG_ERR_ENCODE = "Failed to prepare the image for analysis."
MSG_ERR_PROVIDER = "Error communicating with %s."
MSG_ERR_RESPONSE_SHAPE = "Unexpected response from %s."
MSG_ERR_UNEXPECTED = "An unexpected error occurred during image processing."
