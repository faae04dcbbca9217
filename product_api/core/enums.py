"""Enumeration definitions for the Product API."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    LOCAL = "local"
    DEV = "dev"
    UAT = "uat"
    UATBIZ = "uatbiz"
    PREPROD = "preprod"
    SANITY = "sanity"
    PROD = "prod"


class ProductType(str, Enum):
    """Kinds of catalog product."""

    SIMPLE = "simple"
    CONFIGURABLE = "configurable"
    BUNDLE = "bundle"
    DIGITAL = "digital"


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"
