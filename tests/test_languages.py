from app.core import languages


def test_catalog_order_and_default():
    assert languages.SUPPORTED_LANGUAGES == ("en", "es", "de", "fr")
    assert languages.default_language() == "en"
    assert languages.is_supported(languages.default_language())


def test_is_supported_is_exact():
    assert languages.is_supported("es")
    assert not languages.is_supported("ES")
    assert not languages.is_supported("it")
    assert not languages.is_supported(None)


def test_normalize_lowercases_and_trims():
    assert languages.normalize(" DE ") == "de"
    assert languages.normalize("Fr") == "fr"


def test_normalize_falls_back_to_default():
    assert languages.normalize("it") == "en"
    assert languages.normalize("") == "en"
    assert languages.normalize(None) == "en"


def test_translation_targets_exclude_source():
    assert languages.translation_targets() == ["es", "de", "fr"]
    assert languages.translation_targets("de") == ["en", "es", "fr"]
