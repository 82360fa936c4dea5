"""
Reference data for SKUs: categories, collections, metal and stone types,
and the per-category size rules used when validating an SKU or order size.
"""
from decimal import Decimal
from types import MappingProxyType

CATEGORY_NONE = 'None'

CATEGORIES = (
    CATEGORY_NONE,
    'Necklace',
    'Bangle',
    'Ring',
    'Earring',
    'Pendant',
    'Ball Lock',
    'Brouch',
    'Bracelet',
    'Cuff Link',
    'Chain',
    'Extras',
    'Tyre',
    'Kadi',
    'Earring Part',
)

# Two-letter prefix of an SKU id
CATEGORY_CODES = MappingProxyType({
    'Necklace': 'NK',
    'Bangle': 'BN',
    'Ring': 'RG',
    'Earring': 'ER',
    'Pendant': 'PN',
    'Ball Lock': 'BL',
    'Brouch': 'BO',
    'Bracelet': 'BR',
    'Cuff Link': 'CF',
    'Chain': 'CH',
    'Extras': 'EX',
    'Tyre': 'TY',
    'Kadi': 'EX',
    'Earring Part': 'EX',
    CATEGORY_NONE: '??',
})

UNKNOWN_CATEGORY_CODE = 'OO'

COLLECTIONS = (
    'None', 'Art Carved', 'Azulik', 'Carnival', 'Carnival Bunch', 'Caterpillar',
    'Chakra', 'Clover', 'Crescent', 'Deco Chic', 'Embrace', 'Eternity', 'Floral',
    'Floral Symphony', 'Gem Laces', 'Jaipore', 'Kaleidoscope', 'Midnight', 'Monaco',
    'Padma', 'Peacock', 'Pebbles', 'Prism Perfection', 'Ratan', 'Rock Candy',
    'Royal', 'Summer', 'Talisman', 'Tutti Frutti',
)

GOLD_YELLOW = 'Yellow Gold'
GOLD_WHITE = 'White Gold'
GOLD_ROSE = 'Rose Gold'
GOLD_NONE = 'None'

GOLD_TYPES = (GOLD_YELLOW, GOLD_WHITE, GOLD_ROSE, GOLD_NONE)

GOLD_TYPE_CODES = MappingProxyType({
    GOLD_YELLOW: '18KYG',
    GOLD_WHITE: '18KWG',
    GOLD_ROSE: '18KRG',
    GOLD_NONE: 'n/a',
})

# Metal part of an SKU id
GOLD_SHORT_CODES = MappingProxyType({
    GOLD_YELLOW: 'YG',
    GOLD_WHITE: 'WG',
    GOLD_ROSE: 'RG',
    GOLD_NONE: 'NO',
})

STONE_TYPE_CODES = MappingProxyType({
    'None': 'None',
    'Akoya Pearl': 'KW',
    'Amazonite': 'AZ',
    'Amethyst': 'AM',
    'Apatite': 'AT',
    'Aquamarine': 'AQ',
    'Beer Quartz': 'BQ',
    'Black Jasper': 'BJ',
    'Black Onyx': 'BO',
    'Blue Chalcedony': 'BC',
    'Blue Kyanite': 'BK',
    'Austrian Blue Opal': 'AO',
    'Blue Sapphire': 'BS',
    'Blue Topaz': 'BT',
    'Camel Jasper': 'CJ',
    'Carnelian': 'CA',
    'Champagne Quartz': 'CQ',
    'Chrysoprase': 'CH',
    'Citrine': 'CI',
    'Coral': 'CO',
    'Crystal': 'CR',
    'Culture Pearl': 'CP',
    'Emerald': 'EM',
    'Emerald & Rubylite': 'ER',
    'Ethiopian Opal': 'EO',
    'Fire Opal': 'FO',
    'Fresh Water Pearl': 'FP',
    'Glass Filled Blue Sapphire': 'FS',
    'Glass Filled Ruby': 'GR',
    'Green Amethyst Dark': 'AD',
    'Hessonite Garnet': 'HG',
    'Honey Quartz': 'HQ',
    'Jade': 'JD',
    'Keshi Pearl': 'GK',
    'Kunzite': 'KU',
    'Kyanite': 'KY',
    'Lapis Lazuli': 'LA',
    'Lemon Quartz': 'LQ',
    'Malachite': 'ML',
    'Moon Stone': 'MT',
    'Morganite': 'MG',
    'Multi Sapphire': 'MS',
    'Multi Spinel': 'SP',
    'Olive Quartz': 'OQ',
    'Opal': 'OP',
    'Pearl': 'PE',
    'Peridot': 'PR',
    'Pink Amethyst': 'AP',
    'Pink Opal': 'KO',
    'Pink Sapphire': 'PS',
    'Pink Tourmaline': 'PT',
    'Purple Garnet': 'UE',
    'Recon Turquies': 'RT',
    'Red Jasper': 'RJ',
    'Rose Quartz': 'RQ',
    'Rubelite': 'RL',
    'Rubelite Quartz': 'RBQ',
    'Ruby': 'RB',
    'Sapphire': 'SE',
    'Sky Blue Topaz': 'LZ',
    'Smoky Quartz': 'SQ',
    'Snowflake Obsidian': 'SN',
    'South Sea Pearl': 'SS',
    'Tahiti Pearl': 'TP',
    'Tanzanite': 'TZ',
    'Tigers Eye': 'TE',
    'Tourmaline': 'TO',
    'T-Savorite': 'TS',
    'Turquoise': 'TQ',
    'Whiskey Quartz': 'WQ',
    'White Sapphire': 'WS',
    'Yellow Sapphire': 'YS',
    'Garnet': 'GA',
    'Rhodolite Garnet': 'RG',
    'Green Amethyst Regular': 'PL',
    'Golden Pearl': 'GP',
    'Cats Eye': 'CE',
    'Ety Turqulois': 'STQ',
    'Madeira Citrine': 'MCI',
})

STONE_TYPES = tuple(STONE_TYPE_CODES)

# Stone lot attributes
STONE_SHAPES = ('FC', 'CB', 'CR')
STONE_CUTS = ('CL', 'OP', 'TM')
STONE_QUALITIES = ('A', 'B')
STONE_LOCATIONS = ('Primary', 'None', 'Other')

# Diamond lot attributes
DIAMOND_SHAPES = ('RD', 'BG')
DIAMOND_SIZES = ('+2', '+6', '-2', 'none')
DIAMOND_QUALITIES = ('HI/SI', 'unknown')
DIAMOND_TYPES = ('Actual', 'unknown')

SIZE_RULES = MappingProxyType({
    'Ring': MappingProxyType({
        'default': Decimal('14'), 'min': Decimal('8'), 'max': Decimal('20'),
        'denomination': Decimal('0.5'), 'unit': 'mm',
    }),
    'Bracelet': MappingProxyType({
        'default': Decimal('7.5'), 'min': Decimal('6'), 'max': Decimal('18'),
        'denomination': Decimal('0.25'), 'unit': 'inch',
    }),
    'Bangle': MappingProxyType({
        'default': Decimal('2.5'), 'min': Decimal('6'), 'max': Decimal('18'),
        'denomination': Decimal('0.25'), 'unit': 'ana',
    }),
    'Necklace': MappingProxyType({
        'default': Decimal('16'), 'min': Decimal('9'), 'max': Decimal('35'),
        'denomination': Decimal('0.5'), 'unit': 'inch',
    }),
    'Pendant': MappingProxyType({
        'default': Decimal('18'), 'min': Decimal('9'), 'max': Decimal('35'),
        'denomination': Decimal('0.5'), 'unit': 'inch',
    }),
    'Chain': MappingProxyType({
        'default': Decimal('9'), 'min': Decimal('9'), 'max': Decimal('35'),
        'denomination': Decimal('0.5'), 'unit': 'inch',
    }),
})


def get_category_code(category):
    """Two-letter SKU prefix for a category name, 'OO' when unknown"""
    return CATEGORY_CODES.get(category, UNKNOWN_CATEGORY_CODE)


def get_gold_short_code(gold_type):
    return GOLD_SHORT_CODES.get(gold_type, GOLD_SHORT_CODES[GOLD_NONE])


def format_sku_number(number):
    return str(number).zfill(4)


def build_sku_id(category, gold_type, number):
    """e.g. ('Ring', 'Yellow Gold', 42) -> 'RGYG-0042'"""
    return f"{get_category_code(category)}{get_gold_short_code(gold_type)}-{format_sku_number(number)}"


def as_choices(values):
    return [(value, value) for value in values]
