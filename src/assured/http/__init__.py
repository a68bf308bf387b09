"""HTTP steps, results and assertions built on httpx."""

from .auth import ApiKeyAuth, ApiKeyLocation, BearerAuth
from .jsonpath import JsonPathError
from .result import HttpStepResult
from .scenario import HttpScenario, given
from .step import HttpClientProvider, HttpRequestStep
from .validation import HttpValidationBuilder

__all__ = [
    'ApiKeyAuth',
    'ApiKeyLocation',
    'BearerAuth',
    'HttpClientProvider',
    'HttpRequestStep',
    'HttpScenario',
    'HttpStepResult',
    'HttpValidationBuilder',
    'JsonPathError',
    'given',
]
