from yeast.compiler.codegen.generator import (
    CodeGenerator,
    TranslationMode,
    TranslationResult,
    translate,
)

__all__ = ["CodeGenerator", "TranslationMode", "TranslationResult", "translate"]
