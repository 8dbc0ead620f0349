from enum import StrEnum


class ProductType(StrEnum):
    """
    Enumeration for how the stock of a product is tracked

    Attributes:
        POOLED: Interchangeable units tracked by a single counter (e.g. chairs).
        SERIALIZED: Individually identified units tracked as instances (e.g. projectors).
    """

    POOLED = "pooled"
    SERIALIZED = "serialized"


class ProductCategory(StrEnum):
    """
    Enumeration for catalog categories of rental equipment

    Attributes:
        FURNITURE: Chairs, tables and lounge furniture.
        TENT: Tents, marquees and canopies.
        LIGHTING: Lamps, projectors and light fixtures.
        SOUND: Speakers, mixers and microphones.
        AUDIOVISUAL: Screens and video equipment.
        DECORATION: Carpets, drapes and decorative items.
        TABLEWARE: Cutlery, glassware and table linen.
        APPLIANCE: Fridges and other appliances.
        OTHER: Anything else.
    """

    FURNITURE = "furniture"
    TENT = "tent"
    LIGHTING = "lighting"
    SOUND = "sound"
    AUDIOVISUAL = "audiovisual"
    DECORATION = "decoration"
    TABLEWARE = "tableware"
    APPLIANCE = "appliance"
    OTHER = "other"
