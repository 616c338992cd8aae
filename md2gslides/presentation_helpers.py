"""Lookups into the Slides API ``Presentation`` JSON."""
from typing import Dict, List, Optional, Tuple


def find_page(presentation: Dict, page_id: str) -> Optional[Dict]:
    for page in presentation.get("slides") or []:
        if page.get("objectId") == page_id:
            return page
    return None


def page_size(presentation: Dict) -> Tuple[float, float]:
    """``(width, height)`` of the presentation's pages in EMU."""
    size = presentation.get("pageSize") or {}
    width = (size.get("width") or {}).get("magnitude")
    height = (size.get("height") or {}).get("magnitude")
    if not width or not height:
        raise ValueError("Presentation has no page size")
    return width, height


def find_layout_id_by_name(presentation: Dict, name: str) -> Optional[str]:
    """Object id of the layout whose ``layoutProperties.name`` is *name*."""
    for layout in presentation.get("layouts") or []:
        if (layout.get("layoutProperties") or {}).get("name") == name:
            return layout.get("objectId")
    return None


def find_layout_name_by_display_name(presentation: Dict, display_name: str) -> Optional[str]:
    """``layoutProperties.name`` of the layout shown as *display_name*."""
    for layout in presentation.get("layouts") or []:
        properties = layout.get("layoutProperties") or {}
        if properties.get("displayName") == display_name:
            return properties.get("name")
    return None


def find_placeholders(presentation: Dict, page_id: str, placeholder_type: str) -> List[Dict]:
    """Every element on the page whose placeholder type is *placeholder_type*.

    Raises:
        ValueError: If the page doesn't exist
    """
    page = find_page(presentation, page_id)
    if page is None:
        raise ValueError(f"Can't find page {page_id}")

    return [
        element
        for element in page.get("pageElements") or []
        if ((element.get("shape") or {}).get("placeholder") or {}).get("type") == placeholder_type
    ]


def find_speaker_notes_object_id(presentation: Dict, page_id: str) -> Optional[str]:
    page = find_page(presentation, page_id)
    if page is None:
        return None
    return (
        page.get("slideProperties", {})
        .get("notesPage", {})
        .get("notesProperties", {})
        .get("speakerNotesObjectId")
    )
