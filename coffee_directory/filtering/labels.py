"""
Display labels for categorical catalog values.
"""

from typing import Dict

from coffee_directory.models import BeanSpecies, CoffeeStatus, ProcessMethod, RoastLevel


ROAST_LEVEL_LABELS: Dict[str, str] = {
    RoastLevel.LIGHT.value: "Light",
    RoastLevel.LIGHT_MEDIUM.value: "Light Medium",
    RoastLevel.MEDIUM.value: "Medium",
    RoastLevel.MEDIUM_DARK.value: "Medium Dark",
    RoastLevel.DARK.value: "Dark",
}

PROCESS_LABELS: Dict[str, str] = {
    ProcessMethod.WASHED.value: "Washed",
    ProcessMethod.NATURAL.value: "Natural",
    ProcessMethod.HONEY.value: "Honey",
    ProcessMethod.PULPED_NATURAL.value: "Pulped Natural",
    ProcessMethod.MONSOONED.value: "Monsooned",
    ProcessMethod.WET_HULLED.value: "Wet Hulled",
    ProcessMethod.ANAEROBIC.value: "Anaerobic",
    ProcessMethod.CARBONIC_MACERATION.value: "Carbonic Maceration",
    ProcessMethod.DOUBLE_FERMENTED.value: "Double Fermented",
    ProcessMethod.EXPERIMENTAL.value: "Experimental",
    ProcessMethod.OTHER.value: "Other",
}

STATUS_LABELS: Dict[str, str] = {
    CoffeeStatus.ACTIVE.value: "Active",
    CoffeeStatus.SEASONAL.value: "Seasonal",
    CoffeeStatus.DISCONTINUED.value: "Discontinued",
    CoffeeStatus.DRAFT.value: "Draft",
    CoffeeStatus.HIDDEN.value: "Hidden",
    CoffeeStatus.COMING_SOON.value: "Coming Soon",
    CoffeeStatus.ARCHIVED.value: "Archived",
}

SPECIES_LABELS: Dict[str, str] = {
    BeanSpecies.ARABICA.value: "Arabica",
    BeanSpecies.ROBUSTA.value: "Robusta",
    BeanSpecies.LIBERICA.value: "Liberica",
    BeanSpecies.BLEND.value: "Blend",
    BeanSpecies.ARABICA_80_ROBUSTA_20.value: "Arabica 80% / Robusta 20%",
    BeanSpecies.ARABICA_70_ROBUSTA_30.value: "Arabica 70% / Robusta 30%",
    BeanSpecies.ARABICA_60_ROBUSTA_40.value: "Arabica 60% / Robusta 40%",
    BeanSpecies.ARABICA_50_ROBUSTA_50.value: "Arabica 50% / Robusta 50%",
    BeanSpecies.ROBUSTA_80_ARABICA_20.value: "Robusta 80% / Arabica 20%",
    BeanSpecies.ARABICA_CHICORY.value: "Arabica + Chicory",
    BeanSpecies.ROBUSTA_CHICORY.value: "Robusta + Chicory",
    BeanSpecies.BLEND_CHICORY.value: "Blend + Chicory",
    BeanSpecies.FILTER_COFFEE_MIX.value: "Filter Coffee Mix",
    BeanSpecies.EXCELSA.value: "Excelsa",
}


def humanize(value: str) -> str:
    """Fallback label for a value missing from its table: title-cased words."""
    return " ".join(part.capitalize() for part in value.replace("-", "_").split("_") if part)


def label_for(table: Dict[str, str], value: str) -> str:
    """Look up a display label, falling back to a humanized value."""
    return table.get(value) or humanize(value)
