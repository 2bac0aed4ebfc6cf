from app.services.translate.types import ProviderResult, TranslationProvider


class PrefixProvider(TranslationProvider):
    """Translates by prefixing every string with the target language."""

    def __init__(self, fail_langs=()):
        self.fail_langs = set(fail_langs)

    @property
    def name(self) -> str:
        return "prefix"

    def is_configured(self) -> bool:
        return True

    async def translate(self, content, source_lang, target_lang):
        if target_lang in self.fail_langs:
            return ProviderResult(success=False, error="unavailable")
        translated = {}
        for key, value in content.items():
            if isinstance(value, list):
                translated[key] = [f"{target_lang}:{item}" for item in value]
            else:
                translated[key] = f"{target_lang}:{value}"
        return ProviderResult(success=True, content=translated)
