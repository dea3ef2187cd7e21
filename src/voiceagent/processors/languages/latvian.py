"""Latvian vocabulary, normalization rules and intent triggers."""

from .base import ComputedRule, DayPart, LanguageProfile, LiteralRule, alternation


HOUR_WORDS = {
    "vienos": 1, "divos": 2, "trijos": 3, "četros": 4, "piecos": 5, "sešos": 6,
    "septiņos": 7, "astoņos": 8, "deviņos": 9, "desmitos": 10,
    "vienpadsmitos": 11, "divpadsmitos": 12,
}

CARDINALS = {
    "viens": 1, "vienu": 1, "vienas": 1, "vienai": 1, "vienam": 1,
    "divi": 2, "divas": 2, "divām": 2, "diviem": 2,
    "trīs": 3, "trijām": 3, "trim": 3, "trijiem": 3,
    "četri": 4, "četras": 4, "četrām": 4, "četriem": 4,
    "pieci": 5, "piecas": 5, "piecām": 5, "pieciem": 5,
    "seši": 6, "sešas": 6, "sešām": 6, "sešiem": 6,
    "septiņi": 7, "septiņas": 7, "septiņām": 7, "septiņiem": 7,
    "astoņi": 8, "astoņas": 8, "astoņām": 8, "astoņiem": 8,
    "deviņi": 9, "deviņas": 9, "deviņām": 9, "deviņiem": 9,
    "desmit": 10, "vienpadsmit": 11, "divpadsmit": 12, "trīspadsmit": 13,
    "četrpadsmit": 14, "piecpadsmit": 15, "sešpadsmit": 16,
    "septiņpadsmit": 17, "astoņpadsmit": 18, "deviņpadsmit": 19,
    "divdesmit": 20, "trīsdesmit": 30, "četrdesmit": 40, "piecdesmit": 50,
}

_ORDINAL_STEMS = {
    "pirm": 1, "otr": 2, "treš": 3, "ceturt": 4, "piekt": 5, "sest": 6,
    "septīt": 7, "astot": 8, "devīt": 9, "desmit": 10, "vienpadsmit": 11,
    "divpadsmit": 12, "trīspadsmit": 13, "četrpadsmit": 14, "piecpadsmit": 15,
    "sešpadsmit": 16, "septiņpadsmit": 17, "astoņpadsmit": 18,
    "deviņpadsmit": 19, "divdesmit": 20, "trīsdesmit": 30,
}

# Locative is what speakers use for dates; nominative and dative show up in dictation
ORDINALS = {
    f"{stem}{ending}": value
    for stem, value in _ORDINAL_STEMS.items()
    for ending in ("ajā", "ais", "ajam", "o")
}

MONTH_STEMS = {
    "janvār": 1, "februār": 2, "mart": 3, "aprīl": 4, "maij": 5, "jūnij": 6,
    "jūlij": 7, "august": 8, "septembr": 9, "oktobr": 10, "novembr": 11,
    "decembr": 12,
}

_ACCOUNTANT_FORMS = {
    "s": "grāmatvede",
    "am": "grāmatvedim",
    "ai": "grāmatvedei",
    "a": "grāmatvedes",
    "u": "grāmatvedi",
}

NORMALIZATION_RULES = (
    LiteralRule("reit_to_rit", r'\breit\b', "rīt"),
    LiteralRule("rit_to_rit", r'\brit\b', "rīt"),
    LiteralRule("pulkstenis_to_pulksten", r'\bp(?:u)?lkstenis\b', "pulksten"),
    LiteralRule("tiksanas_to_tiksanas", r'\btikšan(?:as|os)\b', "tikšanās"),
    LiteralRule("nullei_to_nulle", r'\bnullei\b', "nullē"),
    LiteralRule("sastaja_to_sestaja", r'\bsastajā\b', "sestajā"),
    ComputedRule(
        "split_accountant_compound",
        r'\bgrāmatu\s+vedēj(s|am|ai|a|u)\b',
        lambda match: _ACCOUNTANT_FORMS[match.group(1).lower()],
    ),
    ComputedRule(
        "split_merged_day_and_time",
        r'\b(šodien|parīt|rīt)(plkst|pulksten|' + alternation(HOUR_WORDS) + r')\b',
        lambda match: f"{match.group(1)} {match.group(2)}",
        preserve_case=False,
    ),
)

PROFILE = LanguageProfile(
    code="lv",
    name="Latviešu",
    timezone="Europe/Riga",
    normalization_rules=NORMALIZATION_RULES,

    relative_days={
        "šodien": 0, "šovakar": 0, "šorīt": 0, "šonakt": 0,
        "rīt": 1, "rītdien": 1, "parīt": 2, "parītdien": 2,
    },
    weekday_stems={
        "pirmdien": 1, "otrdien": 2, "trešdien": 3, "ceturtdien": 4,
        "piektdien": 5, "sestdien": 6, "svētdien": 7,
    },
    next_week_pattern=r'\bnākam\w*\s+nedēļ\w*|\bnākoš\w*\s+nedēļ\w*|\bnākamnedēļ\w*',
    month_stems=MONTH_STEMS,
    ordinals=ORDINALS,
    ordinal_tens={"divdesmit": 20, "trīsdesmit": 30},
    cardinals=CARDINALS,

    offset_marker=r'pēc',
    offset_marker_first=True,
    offset_units=(
        (r'min(?:ūt\w*)?\.?', "minutes"),
        (r'stund\w*|h\b', "hours"),
        (r'dien\w*', "days"),
        (r'nedēļ\w*', "weeks"),
    ),
    fractional_offsets=(
        (r'\bpēc\s+pusotr\w*\s+stund\w*', 90),
        (r'\bpēc\s+pus\s*stund\w*', 30),
    ),

    time_markers=r'plkst\.?|pulksten',
    hour_words=HOUR_WORDS,
    half_hour_template=r'\bpus(?P<w>{words})\b',
    half_hour_words=HOUR_WORDS,
    day_parts=(
        (r'\bno\s+rīta\b|\bšorīt\b|\brītos\b', DayPart.MORNING),
        (r'\bpusdienlaikā\b|\bpusdienās\b', DayPart.NOON),
        (r'\bpēcpusdienā\b|\bdienā\b', DayPart.AFTERNOON),
        (r'\bvakarā\b|\bšovakar\b', DayPart.EVENING),
        (r'\bnaktī\b|\bšonakt\b', DayPart.NIGHT),
    ),
    interval_patterns=(
        r'\bno\s+(?:plkst\.?\s*|pulksten\s+)?(?P<h1>\d{1,2})(?:[:.](?P<m1>\d{2}))?'
        r'\s+līdz\s+(?P<h2>\d{1,2})(?:[:.](?P<m2>\d{2}))?(?![\d.:])',
        r'\b(?:plkst\.?|pulksten)\s*(?P<h1>\d{1,2})(?:[:.](?P<m1>\d{2}))?'
        r'\s*[-–]\s*(?P<h2>\d{1,2})(?:[:.](?P<m2>\d{2}))?(?![\d.:])',
    ),
    chain_separator=r',|\bun\b',

    remind_triggers=r'\batgādin\w*|\bneaizmirsti\b',
    call_verbs=r'\b(?:pie)?zvan(?:īt|i|iet|īšu|īsim)\b',
    relation_words=frozenset({
        "mamma", "mammai", "mātei", "tētis", "tētim", "tēvam", "māsai", "brālim",
        "sievai", "vīram", "meitai", "dēlam", "omei", "opim", "vecmāmiņai",
        "vectētiņam", "draugam", "draudzenei", "kolēģim", "kolēģei",
        "priekšniekam", "priekšniecei", "klientam", "klientei", "grāmatvedei",
        "grāmatvedim", "ārstam", "ārstei", "zobārstam", "direktoram",
    }),
    event_nouns=(
        r'\b(?:tikšan\w*|sapulc\w*|sanāksm\w*|notikum\w*|pasākum\w*|vizīt\w*'
        r'|konferenc\w*|randiņ\w*|prezentācij\w*|intervij\w*)'
    ),
    known_places=(
        r'\b(?:kafejnīc\w*|ofisā|birojā|restorānā|teātrī|kino|slimnīcā|skolā'
        r'|veikalā|bibliotēkā|poliklīnikā|zālē)\b'
    ),
    locative_suffixes=("ā", "ē", "ī", "os", "ās", "ēs", "ū"),
    shopping_triggers=(
        (r'\b(?:nopirkt|nopērc|nopirkšu|iepirkt|iegādāties|pirkt)\b', 1),
        (r'\b(?:pievieno|pievienot|pieliec)\b', 2),
    ),
    item_separator=r'\s*,\s*|\s+un\s+',
    list_fillers=(
        r'^(?:(?:man|mums|lūdzu|sarakstam|sarakstā|iepirkumu|iepirkumiem'
        r'|grozā|grozam|arī)\s+)+'
    ),
    shopping_label="Pirkumi",
    note_triggers=r'\b(?:pieraksti|pierakstīt|piefiksē|piezīme|ideja|atceries)\b',
    note_nouns={
        "ideja": "Ideja", "ideju": "Ideja", "piezīme": "Piezīme", "piezīmi": "Piezīme", "note": "Note",
    },
    default_label="Atgādinājums",
    subordinators=frozenset({"ja", "ka", "jo", "kad", "lai", "kamēr"}),
    needs_context_phrases=(
        r'\btas\s+pats\b', r'\btajā\s+pašā\b', r'\bkā\s+vakar\b',
        r'\bkā\s+parasti\b', r'\bkā\s+iepriekš\b', r'\bkad\s+būs\s+laiks\b',
        r'\bkaut\s+kad\b', r'\bvēlāk\b',
    ),

    filler_words=r'lūdzu|man|mums|un|ka|lai|tad|arī|vēl',
    function_words=frozenset({
        "no", "uz", "par", "pie", "ar", "līdz", "pēc", "pa", "bez", "ap", "vai", "nevis",
    }),
    command_verbs=(
        r'\b(?:pievieno|pievienot|ieliec|ielieciet|izveido|izveidot|uztaisi'
        r'|ieplāno|ieplānot|saplāno)\b'
    ),
    notes_markers=r'\bar\s+piezīmi\b,?\s*(?:ka\s+)?|\bpiezīmē\b,?\s*(?:ka\s+)?',
    due_prefix=r'līdz',
    due_label="līdz",

    contact_suffixes=(
        ("iņam", "iņš"),
        ("am", "s"),
        ("im", "is"),
        ("ai", "a"),
        ("ei", "e"),
        ("um", "us"),
    ),
)
