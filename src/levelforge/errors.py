from __future__ import annotations


class LevelGenerationError(RuntimeError):
    pass


class PathGenerationStalled(LevelGenerationError):
    pass


class NoMatchingTemplate(LevelGenerationError, LookupError):
    def __init__(self, theme: str, signature: object) -> None:
        super().__init__(f"No room template for theme '{theme}' with signature {signature}.")
        self.theme = theme
        self.signature = signature
