"""Variant determination: rule tables, era detection, classifier and override merger."""
from .classifier import CardInput, ClassificationResult, VariantClassifier, VariantFlag
from .overrides import CustomVariantData, MergeResult, merge
from .rules import CardException, EraDefinition, RarityMapping, RuleTables, SetPolicy

__all__ = [
    "CardInput",
    "ClassificationResult",
    "VariantClassifier",
    "VariantFlag",
    "CustomVariantData",
    "MergeResult",
    "merge",
    "CardException",
    "EraDefinition",
    "RarityMapping",
    "RuleTables",
    "SetPolicy",
]
