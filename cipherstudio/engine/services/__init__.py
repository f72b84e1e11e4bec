"""External collaborators: identity and inference services."""

from cipherstudio.engine.services.identity import (
    FirebaseIdentityService,
    IdentityError,
    IdentityService,
    UnavailableIdentityService,
)
from cipherstudio.engine.services.inference import (
    GeminiInferenceService,
    InferenceError,
    InferenceService,
    InferenceUnavailableError,
    UnavailableInferenceService,
)

__all__ = [
    "FirebaseIdentityService",
    "GeminiInferenceService",
    "IdentityError",
    "IdentityService",
    "InferenceError",
    "InferenceService",
    "InferenceUnavailableError",
    "UnavailableIdentityService",
    "UnavailableInferenceService",
]
