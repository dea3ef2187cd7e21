"""Estonian vocabulary, normalization rules and intent triggers."""

from .base import ComputedRule, DayPart, LanguageProfile, LiteralRule


HOUR_WORDS = {
    "üks": 1, "kaks": 2, "kolm": 3, "neli": 4, "viis": 5, "kuus": 6,
    "seitse": 7, "kaheksa": 8, "üheksa": 9, "kümme": 10, "üksteist": 11,
    "kaksteist": 12,
}

# "pool üheksa" is half past eight: the hour word is in the genitive
HALF_HOUR_WORDS = {
    "ühe": 1, "kahe": 2, "kolme": 3, "nelja": 4, "viie": 5, "kuue": 6,
    "seitsme": 7, "kaheksa": 8, "üheksa": 9, "kümne": 10, "üheteist": 11,
    "kaheteist": 12,
}

CARDINALS = {
    **HOUR_WORDS,
    **HALF_HOUR_WORDS,
    "kolmteist": 13, "neliteist": 14, "viisteist": 15, "viieteist": 15,
    "kakskümmend": 20, "kahekümne": 20, "kolmkümmend": 30, "kolmekümne": 30,
    "nelikümmend": 40, "neljakümne": 40, "viiskümmend": 50, "viiekümne": 50,
}

_ORDINAL_STEMS = {
    "esime": 1, "tei": 2, "kolmand": 3, "neljand": 4, "viiend": 5, "kuuend": 6,
    "seitsmend": 7, "kaheksand": 8, "üheksand": 9, "kümnend": 10,
    "kahekümnend": 20, "kolmekümnend": 30,
}

_TEEN_STEMS = {
    "ühe": 11, "kahe": 12, "kolme": 13, "nelja": 14, "viie": 15,
    "kuue": 16, "seitsme": 17, "kaheksa": 18, "üheksa": 19,
}

# Nominative ordinals are irregular, the adessive ("-al") is built on the stem
ORDINALS = {
    "esimene": 1, "teine": 2, "kolmas": 3, "neljas": 4, "viies": 5, "kuues": 6,
    "seitsmes": 7, "kaheksas": 8, "üheksas": 9, "kümnes": 10,
    "kahekümnes": 20, "kolmekümnes": 30,
    "esimesel": 1, "teisel": 2,
    **{f"{stem}al": value for stem, value in _ORDINAL_STEMS.items() if stem not in ("esime", "tei")},
    **{f"{stem}teistkümnes": value for stem, value in _TEEN_STEMS.items()},
    **{f"{stem}teistkümnendal": value for stem, value in _TEEN_STEMS.items()},
}

MONTH_STEMS = {
    "jaanuar": 1, "veebruar": 2, "märts": 3, "aprill": 4, "mai": 5, "juuni": 6,
    "juuli": 7, "august": 8, "septemb": 9, "oktoob": 10, "novemb": 11,
    "detsemb": 12,
}

NORMALIZATION_RULES = (
    LiteralRule("kel_to_kell", r'\bkel\b', "kell"),
    ComputedRule(
        "split_merged_day_and_kell",
        r'\b(ülehomme|homme|täna)(kell)\b',
        lambda match: f"{match.group(1)} {match.group(2)}",
        preserve_case=False,
    ),
)

PROFILE = LanguageProfile(
    code="et",
    name="Eesti",
    timezone="Europe/Tallinn",
    normalization_rules=NORMALIZATION_RULES,

    relative_days={"täna": 0, "homme": 1, "ülehomme": 2},
    weekday_stems={
        "esmaspäev": 1, "teisipäev": 2, "kolmapäev": 3, "neljapäev": 4,
        "reede": 5, "laupäev": 6, "pühapäev": 7,
    },
    next_week_pattern=r'\b(?:järgmisel|tuleval)\s+nädalal\b|\bjärgmine\s+nädal\b',
    month_stems=MONTH_STEMS,
    ordinals=ORDINALS,
    ordinal_tens={"kakskümmend": 20, "kahekümne": 20, "kolmkümmend": 30, "kolmekümne": 30},
    cardinals=CARDINALS,

    offset_marker=r'pärast',
    offset_marker_first=False,
    offset_units=(
        (r'min(?:uti|utit)?\.?', "minutes"),
        (r'tunni|tundi|h\b', "hours"),
        (r'päeva', "days"),
        (r'nädala', "weeks"),
    ),
    fractional_offsets=(
        (r'\bpooleteise\s+tunni\s+pärast\b', 90),
        (r'\bpoole\s+tunni\s+pärast\b', 30),
    ),

    time_markers=r'kell(?:a)?',
    hour_words=HOUR_WORDS,
    word_hours_need_marker=True,
    half_hour_template=r'\bpool\s+(?P<w>{words})\b',
    half_hour_words=HALF_HOUR_WORDS,
    day_parts=(
        (r'\bhommikul\b', DayPart.MORNING),
        (r'\bkeskpäeval\b', DayPart.NOON),
        (r'\bpärastlõunal\b|\bpäeval\b', DayPart.AFTERNOON),
        (r'\bõhtul\b', DayPart.EVENING),
        (r'\böösel\b', DayPart.NIGHT),
    ),
    interval_patterns=(
        r'\bkell\s*(?P<h1>\d{1,2})(?:[:.](?P<m1>\d{2}))?\s*(?:[-–]|kuni)\s*'
        r'(?P<h2>\d{1,2})(?:[:.](?P<m2>\d{2}))?(?![\d.:])',
        r'\b(?P<h1>\d{1,2})(?:[:.](?P<m1>\d{2}))?\s+kuni\s+'
        r'(?P<h2>\d{1,2})(?:[:.](?P<m2>\d{2}))?(?![\d.:])',
    ),
    chain_separator=r',|\bja\b',

    remind_triggers=r'\bmeenut\w*|\btuleta\w*\s+meelde\b',
    call_verbs=r'\bhelista\w*',
    relation_words=frozenset({
        "ema", "emale", "isa", "isale", "õele", "vennale", "naisele", "mehele",
        "tütrele", "pojale", "vanaemale", "vanaisale", "sõbrale", "kolleegile",
        "ülemusele", "kliendile", "raamatupidajale", "arstile",
    }),
    event_nouns=r'\b(?:kohtumi\w*|koosolek\w*|sündmus\w*|üritus\w*|visiit\w*|konverents\w*)',
    known_places=(
        r'\b(?:kohvikus|kontoris|restoranis|teatris|kinos|haiglas|koolis|poes'
        r'|raamatukogus)\b'
    ),
    locative_suffixes=("as", "us", "es", "is"),
    shopping_triggers=(
        (r'\b(?:osta|ostma|ostke|ostukorvi)\b', 1),
        (r'\blisa\b', 2),
    ),
    item_separator=r'\s*,\s*|\s+ja\s+',
    list_fillers=r'^(?:(?:mulle|palun|ostukorvi|nimekirja|ka)\s+)+',
    shopping_label="Ostukorv",
    note_triggers=r'\b(?:kirjuta|märgi|märkus|idee|pane\s+kirja)\b',
    note_nouns={
        "idee": "Idee", "ideed": "Idee", "märkus": "Märkus", "märkust": "Märkus", "note": "Note",
    },
    default_label="Meeldetuletus",
    subordinators=frozenset({"et", "kui", "sest", "kuna"}),
    needs_context_phrases=(
        r'\bsama\s+aeg\w*', r'\bnagu\s+eile\b', r'\bnagu\s+tavaliselt\b',
        r'\bkunagi\b', r'\bhiljem\b',
    ),

    filler_words=r'palun|mulle|meile|ja|et|siis|ka',
    function_words=frozenset({
        "kell", "kuni", "alates", "pärast", "enne", "koos", "või", "ja", "kas",
    }),
    command_verbs=r'\b(?:lisa|loo|tee|planeeri|pane)\b',
    notes_markers=r'\bmärkusega\b,?\s*(?:et\s+)?',
    due_prefix=r'kuni|hiljemalt',
    due_label="kuni",

    contact_suffixes=(
        ("ile", ""),
        ("le", ""),
    ),
)
