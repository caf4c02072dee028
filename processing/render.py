from __future__ import annotations

from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

from search.pipeline import ScoredResult

UNCONFIGURED_BIN = "Bac non configuré"
NO_RESULTS = "Aucun résultat. Essaie un autre mot ou un synonyme."
START_TYPING = "Commence à taper pour voir des suggestions."


def _div(soup: BeautifulSoup, cls: str, text: str | None = None) -> Tag:
    tag = soup.new_tag("div", attrs={"class": cls})
    if text:
        tag.string = text
    return tag


def _card(soup: BeautifulSoup, result: ScoredResult, *, show_score: bool) -> Tag:
    doc = result.document
    item, bin_ = doc.item, doc.category

    card = _div(soup, "card")
    card.append(_div(soup, "title", item.name))

    row = _div(soup, "row")
    badge = soup.new_tag("span", attrs={"class": "badge"})
    if bin_:
        badge["style"] = f"background:{bin_.hex};color:{bin_.text_hex};border-color:{bin_.hex}"
        badge.string = bin_.label
    else:
        badge.string = UNCONFIGURED_BIN
    row.append(badge)
    if show_score:
        score = soup.new_tag("span", attrs={"class": "small"})
        score.string = f"Score: {result.score:.2f}"
        row.append(score)
    card.append(row)

    if item.notes:
        card.append(_div(soup, "note", item.notes))
    if bin_ and bin_.notes:
        card.append(_div(soup, "note", bin_.notes))
    aliases = item.alias_list
    if aliases:
        note = _div(soup, "note small")
        strong = soup.new_tag("strong")
        strong.string = "Alias :"
        note.append(strong)
        note.append(" " + ", ".join(aliases))
        card.append(note)
    return card


def render_card(result: ScoredResult, *, show_score: bool = True) -> str:
    soup = BeautifulSoup("", "html.parser")
    return str(_card(soup, result, show_score=show_score))


def render_results(
    results: Iterable[ScoredResult], query: str = "", *, show_score: bool = True
) -> str:
    soup = BeautifulSoup("", "html.parser")
    cards = [_card(soup, r, show_score=show_score) for r in results]
    if not cards:
        return str(_div(soup, "empty", NO_RESULTS if query.strip() else START_TYPING))
    return "\n".join(str(c) for c in cards)
