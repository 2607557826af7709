from .classifier import FALLBACK_RESULT, Rates, classify, derive_rates, normalize

__all__ = ["FALLBACK_RESULT", "Rates", "classify", "derive_rates", "normalize"]
