"""
Selector tables for the listing page template and the in-page extraction script.

Each logical field has an ordered list of candidate selectors; the first
candidate that yields a non-empty value wins. New template variants are
supported by adding candidates here, not by touching the extraction code.
"""
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple
from urllib.parse import urljoin

from .models import FEATURE_FIELDS, RawExtraction
from .utils import clean_text


class Selector(NamedTuple):
    """CSS selector plus the attribute to read (None reads the text content)."""
    css: str
    attr: Optional[str] = None


FIELD_SELECTORS: Dict[str, Tuple[Selector, ...]] = {
    "model": (
        Selector("h1.vehicle-title"),
        Selector(".vehicle-name"),
        Selector(".title-vehicle"),
    ),
    "price": (
        Selector(".price-value"),
        Selector(".vehicle-price"),
        Selector(".price"),
    ),
    "vehicle_number": (
        Selector(".vehicle-id"),
        Selector(".stock-number"),
        Selector(".fahrzeugnummer"),
    ),
    "dealer_location": (
        Selector(".dealer-location"),
        Selector(".standort"),
        Selector(".location"),
    ),
    "main_image": (
        Selector(".main-image img", "src"),
        Selector(".hero-image img", "src"),
        Selector(".primary-image img", "src"),
    ),
}

# Label/value specification blocks
SPEC_BLOCK = ".spec-item, .vehicle-spec, .specification-item"
SPEC_LABEL = ".spec-label, .label"
SPEC_VALUE = ".spec-value, .value"

# Lower-cased label -> field. German labels come first so they win over
# their English counterparts when a page carries both.
SPEC_LABELS: Dict[str, str] = {
    "fahrzeugart": "vehicle_type",
    "erstzulassung": "first_registration",
    "modelljahr": "model_year",
    "laufleistung": "mileage",
    "kilometerstand": "mileage",
    "leistung": "power",
    "kraftstoffart": "fuel_type",
    "kraftstoff": "fuel_type",
    "getriebe": "transmission",
    "außenfarbe": "exterior_color",
    "aussenfarbe": "exterior_color",
    "innenfarbe": "interior_color",
    "polster": "upholstery",
    "beschleunigung": "acceleration",
    "garantie": "warranty",
    "ladezeit": "charging_duration",
    "reichweite": "electric_range",
    "energieverbrauch": "energy",
    "vehicle type": "vehicle_type",
    "first registration": "first_registration",
    "model year": "model_year",
    "mileage": "mileage",
    "power": "power",
    "fuel type": "fuel_type",
    "transmission": "transmission",
    "exterior color": "exterior_color",
    "interior color": "interior_color",
    "upholstery": "upholstery",
    "acceleration": "acceleration",
    "warranty": "warranty",
    "charging time": "charging_duration",
    "range": "electric_range",
    "energy consumption": "energy",
}

SPEC_FIELDS = tuple(dict.fromkeys(SPEC_LABELS.values()))

# Images
IMAGE_SELECTOR = 'img[src*="vehicle"], img[src*="mercedes"], .gallery img, .vehicle-images img'
IMAGE_EXCLUDE = ("placeholder", "loading")

# Equipment lists: candidate containers per field, items inside them
FEATURE_CONTAINERS: Dict[str, Tuple[str, ...]] = {
    "interior": (".interior-features", ".interieur"),
    "exterior": (".exterior-features", ".exterieur"),
    "infotainment": (".infotainment-features", ".infotainment"),
    "safety_tech": (".safety-features", ".sicherheit"),
    "packages": (".package-features", ".pakete"),
}
FEATURE_ITEMS = "li, .feature-item, .equipment-item"


EXTRACT_SCRIPT = """
(cfg) => {
  const textOf = (el) => (el && el.textContent ? el.textContent.trim() : "");

  const readFirst = (candidates) => {
    for (const c of candidates) {
      const el = document.querySelector(c.css);
      if (!el) continue;
      const value = c.attr ? (el.getAttribute(c.attr) || "").trim() : textOf(el);
      if (value) return value;
    }
    return "";
  };

  const fields = {};
  for (const [name, candidates] of Object.entries(cfg.fields)) {
    fields[name] = readFirst(candidates);
  }

  const specPairs = [];
  document.querySelectorAll(cfg.specBlock).forEach((block) => {
    const label = textOf(block.querySelector(cfg.specLabel));
    const value = textOf(block.querySelector(cfg.specValue));
    if (label && value) specPairs.push([label, value]);
  });

  const images = [];
  document.querySelectorAll(cfg.images).forEach((img) => {
    const src = img.getAttribute("src");
    if (src) images.push(src);
  });

  const features = {};
  for (const [name, containers] of Object.entries(cfg.features)) {
    features[name] = [];
    for (const css of containers) {
      const container = document.querySelector(css);
      if (!container) continue;
      container.querySelectorAll(cfg.featureItems).forEach((item) => {
        const text = textOf(item);
        if (text) features[name].push(text);
      });
      break;
    }
  }

  return { fields, specPairs, images, features };
}
"""


def script_args() -> Dict:
    """JSON-serializable selector tables handed to EXTRACT_SCRIPT."""
    return {
        "fields": {
            name: [sel._asdict() for sel in candidates]
            for name, candidates in FIELD_SELECTORS.items()
        },
        "specBlock": SPEC_BLOCK,
        "specLabel": SPEC_LABEL,
        "specValue": SPEC_VALUE,
        "images": IMAGE_SELECTOR,
        "features": {name: list(css) for name, css in FEATURE_CONTAINERS.items()},
        "featureItems": FEATURE_ITEMS,
    }


def map_spec_labels(pairs: Iterable[Iterable[str]]) -> Dict[str, str]:
    """Map (label, value) pairs to fields using SPEC_LABELS; unknown labels are dropped."""
    specs: Dict[str, str] = {}
    for label, value in pairs:
        label = clean_text(label).lower()
        value = clean_text(value)
        if label and value:
            specs[label] = value

    mapped: Dict[str, str] = {}
    for label, field_name in SPEC_LABELS.items():
        if field_name not in mapped and specs.get(label):
            mapped[field_name] = specs[label]
    return mapped


def absolute_url(src: str, page_url: str) -> str:
    if not src:
        return ""
    return urljoin(page_url, src)


def discover_images(srcs: Iterable[str], page_url: str) -> List[str]:
    """Drop placeholders and data URIs, make URLs absolute, dedupe in order."""
    urls: List[str] = []
    for src in srcs:
        src = (src or "").strip()
        if not src or src.startswith("data:"):
            continue
        lowered = src.lower()
        if any(marker in lowered for marker in IMAGE_EXCLUDE):
            continue
        url = absolute_url(src, page_url)
        if url not in urls:
            urls.append(url)
    return urls


def build_raw_extraction(payload: Dict, page_url: str) -> RawExtraction:
    """Turn the script's output into a RawExtraction with every key present."""
    fields = payload.get("fields") or {}
    raw: RawExtraction = {name: clean_text(fields.get(name)) for name in FIELD_SELECTORS}
    raw["main_image"] = absolute_url(raw["main_image"], page_url)

    specs = map_spec_labels(payload.get("specPairs") or [])
    for name in SPEC_FIELDS:
        raw[name] = specs.get(name, "")

    raw["images"] = discover_images(payload.get("images") or [], page_url)

    features = payload.get("features") or {}
    for name in FEATURE_FIELDS:
        raw[name] = [t for t in (clean_text(x) for x in features.get(name) or []) if t]

    return raw

