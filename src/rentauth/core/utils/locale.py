"""Accept-Language negotiation for collaborator templates."""

from rentauth.core.constants import DEFAULT_LOCALE, SUPPORTED_LOCALES


def negotiate_locale(
    header: str | None,
    supported: tuple[str, ...] = SUPPORTED_LOCALES,
    default: str = DEFAULT_LOCALE,
) -> str:
    """Pick the supported locale that best matches an Accept-Language header.

    Exact tags win over language-only matches; ``q`` weights order the
    candidates. Anything unparseable falls back to the default.

    Examples:
        >>> negotiate_locale("fr-FR,fr;q=0.9")
        'fr-FR'
        >>> negotiate_locale("pt")
        'pt-BR'
        >>> negotiate_locale("ja-JP")
        'en-US'
    """
    if not header:
        return default

    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(header.split(",")):
        tag, _, params = part.strip().partition(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue
        weight = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                weight = float(params[2:])
            except ValueError:
                continue
        candidates.append((-weight, position, tag.lower()))

    by_tag = {locale.lower(): locale for locale in supported}
    by_language = {}
    for locale in supported:
        by_language.setdefault(locale.split("-")[0].lower(), locale)

    for _, _, tag in sorted(candidates):
        if tag in by_tag:
            return by_tag[tag]
        language = tag.split("-")[0]
        if language in by_language:
            return by_language[language]

    return default
