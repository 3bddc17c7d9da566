from __future__ import annotations

from enum import Enum
from typing import Dict, List, NamedTuple, Tuple

# ----------------------------
# Endoscopic biopsy report schema
# ----------------------------
# Static option tables used by the editor, the derivation rules and the
# report generator. Report phrasing is Turkish clinical text and must stay
# byte-stable: it is copied verbatim into pathology reports.
# ----------------------------


class BiopsyLocation(str, Enum):
    ESOPHAGUS = "Özofagus"
    STOMACH = "Mide"
    DUODENUM = "Duodenum/Bulbus"
    ILEUM = "İleum"
    COLON = "Kolon"


# ----------------------------
# Severity (graded findings)
# ----------------------------
NONE = "-"
MILD = "+"
MODERATE = "++"
SEVERE = "+++"
NOT_DONE = "Yapılmadı"

GRADED = {MILD, MODERATE, SEVERE}
SEVERITY_OPTIONS = [NONE, MILD, MODERATE, SEVERE]
SEVERITY_OPTIONS_WITH_NOT_DONE = SEVERITY_OPTIONS + [NOT_DONE]
ENUM_SEVERITY = set(SEVERITY_OPTIONS_WITH_NOT_DONE)

# Report label per finding, in report order.
FINDING_LABELS: Dict[str, str] = {
    "inflammation": "İnflamasyon",
    "activation": "Aktivasyon",
    "atrophy": "Atrofi",
    "hp": "HP",
    "intestinal_metaplasia": "İntestinal metaplazi",
}

# Only these findings may be marked "not done" in the editor.
NOT_DONE_FINDINGS = {"hp", "intestinal_metaplasia"}


# ----------------------------
# Diagnoses
# ----------------------------
DIAGNOSIS_OPTIONS: Dict[BiopsyLocation, List[str]] = {
    BiopsyLocation.ESOPHAGUS: [
        "Normal görünümlü özofagus mukozası",
        "Reflü özofajit",
        "Barrett özofagus",
        "Eozinofilik özofajit",
        "Kandida özofajiti",
        "İnflamasyon bulguları",
        "Hiperplastik polip",
    ],
    BiopsyLocation.STOMACH: [
        "Normal görünümlü mide mukozası",
        "Kronik gastrit",
        "Kronik aktif gastrit",
        "Reaktif gastropati",
        "Atrofik gastrit",
        "İntestinal metaplazi",
        "Fundik gland polibi",
        "Hiperplastik polip",
        "Nöroendokrin hücre hiperplazisi",
    ],
    BiopsyLocation.DUODENUM: [
        "Normal görünümlü duodenum mukozası",
        "Kronik duodenit",
        "Kronik aktif duodenit",
        "Çölyak hastalığı (Marsh 1)",
        "Çölyak hastalığı (Marsh 2)",
        "Çölyak hastalığı (Marsh 3a)",
        "Çölyak hastalığı (Marsh 3b)",
        "Çölyak hastalığı (Marsh 3c)",
        "Gastrik foveolar metaplazi",
        "Brunner gland hiperplazisi",
    ],
    BiopsyLocation.ILEUM: [
        "Normal görünümlü terminal ileum mukozası",
        "Kronik ileit",
        "Kronik aktif ileit",
        "Lenfoid hiperplazi",
    ],
    BiopsyLocation.COLON: [
        "Normal görünümlü kolon mukozası",
        "Kronik kolit",
        "Kronik aktif kolit",
        "Mikroskopik kolit (Kollajenöz)",
        "Mikroskopik kolit (Lenfositik)",
        "Hiperplastik polip",
        "Sessile serrated lezyon",
        "Tubuler adenom",
        "Tubulovillöz adenom",
        "Villöz adenom",
    ],
}

# Stomach diagnoses that are machine-derived from findings. Anything else
# counts as a deliberate choice and is never overwritten.
STOMACH_NORMAL = "Normal görünümlü mide mukozası"
STOMACH_CHRONIC = "Kronik gastrit"
STOMACH_CHRONIC_ACTIVE = "Aktivasyonlu kronik gastrit"
STOMACH_AUTO_DIAGNOSES = {STOMACH_NORMAL, STOMACH_CHRONIC, STOMACH_CHRONIC_ACTIVE}

DEFAULT_DIAGNOSIS: Dict[BiopsyLocation, str] = {
    BiopsyLocation.STOMACH: STOMACH_NORMAL,
    BiopsyLocation.DUODENUM: "Normal görünümlü duodenum mukozası",
    BiopsyLocation.ILEUM: "Normal görünümlü ileum mukozası",
}


# ----------------------------
# Sites
# ----------------------------
# Main sites behave like radio buttons (they replace the whole sub-location
# list); sub-sites toggle in and out after the main site.
SITE_OPTIONS: Dict[BiopsyLocation, List[str]] = {
    BiopsyLocation.ESOPHAGUS: ["Proksimal", "Orta", "Distal", "Gastroözofageal bileşke"],
    BiopsyLocation.STOMACH: ["Kardia", "Fundus", "Korpus", "Antrum", "Pilor", "İnsisura angularis"],
    BiopsyLocation.DUODENUM: ["Bulbus", "D2", "D3"],
    BiopsyLocation.ILEUM: ["Terminal ileum"],
    BiopsyLocation.COLON: [
        "Çekum",
        "Asendan kolon",
        "Hepatik fleksura",
        "Transvers kolon",
        "Splenik fleksura",
        "İnen kolon",
        "Sigmoid kolon",
        "Rektum",
        "Anal kanal",
    ],
}

SUB_SITE_OPTIONS: Dict[BiopsyLocation, List[str]] = {
    BiopsyLocation.ESOPHAGUS: ["Özofagus"],
    BiopsyLocation.STOMACH: ["Küçük kurvatur", "Büyük kurvatur", "Ön duvar", "Arka duvar"],
    BiopsyLocation.DUODENUM: [],
    BiopsyLocation.ILEUM: [],
    BiopsyLocation.COLON: ["Polip", "Ülser kenarı"],
}

DEFAULT_SUB_LOCATION: Dict[BiopsyLocation, str] = {
    BiopsyLocation.ESOPHAGUS: "Özofagus",
    BiopsyLocation.DUODENUM: "Duodenum",
    BiopsyLocation.ILEUM: "Terminal ileum",
}


# ----------------------------
# Predefined notes
# ----------------------------
PREDEFINED_NOTES: Dict[BiopsyLocation, List[str]] = {
    BiopsyLocation.ESOPHAGUS: [
        "Displazi yoktur",
        "Goblet hücre metaplazisi yoktur",
        "Goblet hücre metaplazisi vardır",
        "HP: (-)",
        "Mukozada aktif inflamasyon vardır",
        "Foveolar hiperplazi vardır",
        "Eozinofil yoktur",
        "Ülseröz inflamasyon izlenmiştir",
        "Hiperplastik polip",
    ],
    BiopsyLocation.STOMACH: [
        "Displazi yoktur",
        "Foveolar hiperplazi vardır",
        "Lenfoid folikül vardır",
        "Germinal merkezi aktif lenfoid folikül vardır",
        "Yüzeyel ülser vardır",
        "Fundik glandlarda dilatasyon vardır",
    ],
    BiopsyLocation.DUODENUM: [
        "İntraepitelyal lenfosit artışı yoktur",
        "İntraepitelyal lenfosit artışı vardır",
        "Villuslarda atrofi yoktur",
        "Villuslarda hafif atrofi vardır",
        "Villuslarda belirgin atrofi vardır",
        "Villuslarda komplet atrofi vardır",
        "Displazi yoktur",
        "Gastrik foveolar metaplazi vardır",
        "PNL aktivasyonu vardır",
        "Brunner gland hiperplazisi vardır",
    ],
    BiopsyLocation.ILEUM: [
        "Lenfoid hiperplazi vardır",
        "Displazi yoktur",
    ],
    BiopsyLocation.COLON: [
        "Displazi yoktur",
        "Aktivasyon yoktur",
        "Aktivasyon mevcuttur",
        "Kript distorsiyonu yoktur",
        "Kript distorsiyonu vardır",
        "Bazal plazmositoz yoktur",
        "Bazal plazmositoz vardır",
        "Hiperplastik polip",
        "Sessile serrated lezyon",
        "Tubuler adenom",
        "Tubulovillöz adenom",
        "Villöz adenom",
    ],
}


# ----------------------------
# Duodenum (site, diagnosis) -> canonical report text
# ----------------------------
# Report diagnoses must never appear as a key diagnosis for the same site,
# otherwise every later edit would re-apply the notes.
class DuodenumMapping(NamedTuple):
    site: str
    diagnosis: str
    report_diagnosis: str
    notes: Tuple[str, ...]


DUODENUM_MAPPINGS: List[DuodenumMapping] = [
    DuodenumMapping(
        "Bulbus",
        "Normal görünümlü duodenum mukozası",
        "Normal görünümlü bulbus mukozası",
        ("Villuslarda atrofi yoktur", "İntraepitelyal lenfosit artışı yoktur"),
    ),
    DuodenumMapping(
        "Bulbus",
        "Kronik duodenit",
        "Kronik bulbit",
        ("Villuslarda atrofi yoktur", "Displazi yoktur"),
    ),
    DuodenumMapping(
        "Bulbus",
        "Kronik aktif duodenit",
        "Kronik aktif bulbit",
        ("PNL aktivasyonu vardır", "Displazi yoktur"),
    ),
    DuodenumMapping(
        "Bulbus",
        "Gastrik foveolar metaplazi",
        "Gastrik foveolar metaplazi içeren bulbus mukozası",
        ("Gastrik foveolar metaplazi vardır", "Displazi yoktur"),
    ),
    DuodenumMapping(
        "Bulbus",
        "Brunner gland hiperplazisi",
        "Brunner gland hiperplazisi gösteren bulbus mukozası",
        ("Brunner gland hiperplazisi vardır",),
    ),
    DuodenumMapping(
        "D2",
        "Normal görünümlü duodenum mukozası",
        "Normal villus yapısında duodenum mukozası",
        ("Villuslarda atrofi yoktur", "İntraepitelyal lenfosit artışı yoktur"),
    ),
    DuodenumMapping(
        "D2",
        "Çölyak hastalığı (Marsh 1)",
        "İntraepitelyal lenfositoz (Marsh 1), çölyak hastalığı açısından klinik korelasyon önerilir",
        ("İntraepitelyal lenfosit artışı vardır", "Villuslarda atrofi yoktur"),
    ),
    DuodenumMapping(
        "D2",
        "Çölyak hastalığı (Marsh 2)",
        "İntraepitelyal lenfositoz ve kript hiperplazisi (Marsh 2)",
        ("İntraepitelyal lenfosit artışı vardır", "Villuslarda atrofi yoktur"),
    ),
    DuodenumMapping(
        "D2",
        "Çölyak hastalığı (Marsh 3a)",
        "Çölyak hastalığı ile uyumlu bulgular (Marsh 3a)",
        ("İntraepitelyal lenfosit artışı vardır", "Villuslarda hafif atrofi vardır"),
    ),
    DuodenumMapping(
        "D2",
        "Çölyak hastalığı (Marsh 3b)",
        "Çölyak hastalığı ile uyumlu bulgular (Marsh 3b)",
        ("İntraepitelyal lenfosit artışı vardır", "Villuslarda belirgin atrofi vardır"),
    ),
    DuodenumMapping(
        "D2",
        "Çölyak hastalığı (Marsh 3c)",
        "Çölyak hastalığı ile uyumlu bulgular (Marsh 3c)",
        ("İntraepitelyal lenfosit artışı vardır", "Villuslarda komplet atrofi vardır"),
    ),
]


# ----------------------------
# Location feature bags
# ----------------------------
# flag name -> canned report phrase
ESOPHAGUS_FEATURE_PHRASES: Dict[str, str] = {
    "goblet_cell_metaplasia_present": "Goblet hücre metaplazisi vardır",
    "goblet_cell_metaplasia_absent": "Goblet hücre metaplazisi yoktur",
    "hp_negative": "HP: (-)",
    "no_dysplasia": "Displazi yoktur",
    "active_inflammation": "Mukozada aktif inflamasyon vardır",
    "foveolar_hyperplasia": "Foveolar hiperplazi vardır",
    "no_eosinophils": "Eozinofil yoktur",
    "ulcerative_inflammation": "Ülseröz inflamasyon izlenmiştir",
    "hyperplastic_polyp": "Hiperplastik polip",
}

STOMACH_FEATURE_PHRASES: Dict[str, str] = {
    "foveolar_hyperplasia": "Foveolar hiperplazi vardır",
    "lymphoid_follicle": "Lenfoid folikül vardır",
    "active_lymphoid_follicle": "Germinal merkezi aktif lenfoid folikül vardır",
    "superficial_ulcer": "Yüzeyel ülser vardır",
    "no_dysplasia": "Displazi yoktur",
    "fundic_gland_dilatation": "Fundik glandlarda dilatasyon vardır",
}

SYNAPTOPHYSIN_PHRASES: Dict[str, str] = {
    "none": "Nöroendokrin hücre hiperplazisi yoktur (Sinaptofizin ile)",
    "linear": "Lineer nöroendokrin hücre hiperplazisi (Sinaptofizin ile)",
    "micronodular": "Mikronodüler nöroendokrin hücre hiperplazisi (Sinaptofizin ile)",
}

# Editor labels only; duodenum flags are not rendered into the report.
DUODENUM_FEATURE_LABELS: Dict[str, str] = {
    "marsh0": "Marsh 0",
    "marsh1": "Marsh 1",
    "marsh3a": "Marsh 3a",
    "marsh3b": "Marsh 3b",
    "marsh3c": "Marsh 3c",
    "no_intraepithelial_lymphocytes": "İntraepitelyal lenfosit artışı yok",
    "has_intraepithelial_lymphocytes": "İntraepitelyal lenfosit artışı var",
    "no_villus_atrophy": "Villus atrofisi yok",
    "mild_villus_atrophy": "Hafif villus atrofisi",
    "severe_villus_atrophy": "Belirgin villus atrofisi",
    "complete_villus_atrophy": "Komplet villus atrofisi",
}

DUODENUM_FEATURE_DEFAULTS = {"marsh0", "no_intraepithelial_lymphocytes", "no_villus_atrophy"}

# bag attribute on Biopsy -> (location, flag table)
FEATURE_BAGS = {
    "esophagus_features": (BiopsyLocation.ESOPHAGUS, ESOPHAGUS_FEATURE_PHRASES),
    "stomach_features": (BiopsyLocation.STOMACH, STOMACH_FEATURE_PHRASES),
    "duodenum_features": (BiopsyLocation.DUODENUM, DUODENUM_FEATURE_LABELS),
}


# ----------------------------
# Stains
# ----------------------------
# Names of the stains a biopsy is expected to receive by default.
AUTO_STAINS: Dict[BiopsyLocation, List[str]] = {
    BiopsyLocation.ESOPHAGUS: ["PAS+AB"],
    BiopsyLocation.STOMACH: ["PAS+AB", "Warthin Starry"],
    BiopsyLocation.DUODENUM: ["PAS"],
    BiopsyLocation.ILEUM: [],
    BiopsyLocation.COLON: [],
}

# location -> [(name, description)]
DEFAULT_STAINS: Dict[BiopsyLocation, List[Tuple[str, str]]] = {
    BiopsyLocation.ESOPHAGUS: [
        ("PAS+AB", "Özefagus Goblet hücrelerini değerlendirmek için"),
    ],
    BiopsyLocation.STOMACH: [
        ("PAS+AB", "mide mukozasında intestinal metaplaziyi değerlendirmek için"),
        ("Warthin Starry", "Helikobakter Pilori değerlendirmek için"),
    ],
    BiopsyLocation.DUODENUM: [
        ("PAS", "Duedonum mukozasında villus ve silyalı epiteli değerlendirmek için"),
    ],
    BiopsyLocation.ILEUM: [],
    BiopsyLocation.COLON: [],
}

PREDEFINED_STAIN_NAMES = ["PAS", "PAS+AB", "Warthin Starry", "Toluidin Blue"]

# Special stomach stains tied to a finding: (name, description keyword, finding)
HP_STAIN = ("Warthin Starry", "Helikobakter Pilori", "hp")
IM_STAIN = ("PAS+AB", "intestinal metaplazi", "intestinal_metaplasia")


# ----------------------------
# Report text
# ----------------------------
BULLET_INDENT = "     - "
TITLE_SUFFIX = "endoskopik biyopsi"
EOSINOPHIL_PREFIX = "BBA'da eozinofil sayısı: "
STAIN_SECTION_HEADER = "Histokimyasal yöntemle:"
STAIN_SECTION_TRAILER = " boyası yapılmıştır."
