"""Option Catalog - static enumerations for the registration form.

Every option list used by the visit-registration form lives here: admission
classifications, status codes, departments, referral types, insurer companies
and insurance types, the region/district hierarchy and the demographic
enumerations.

Architecture:
    - Pure data, loaded once at import time and never mutated
    - Option lists are tuples, keyed tables are read-only mappings
    - The Constraint Resolver is the only consumer that derives subsets
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from registration_desk.domain.enums import AdmissionClassification, ReferralType


@dataclass(frozen=True)
class Option:
    """A selectable (value, label) pair."""

    value: str
    label: str


@dataclass(frozen=True)
class Region:
    """A region together with the ordered districts it owns."""

    code: str
    name: str
    districts: tuple[Option, ...]


PLACEHOLDER = Option("", "-")


ADMISSION_CLASSIFICATIONS: tuple[Option, ...] = (
    Option(AdmissionClassification.AMBULATORY.value, "Ambulatory"),
    Option(AdmissionClassification.PLANNED_INPATIENT.value, "Planned inpatient"),
    Option(AdmissionClassification.EMERGENCY_INPATIENT.value, "Emergency inpatient"),
)

STATUS_CODES: tuple[Option, ...] = (
    Option("1", "-"),
    Option("2", "Free of charge"),
    Option("3", "Research patients"),
    Option("5", "Protocol: R3767-ONC-2266"),
)


# Departments offered for ambulatory visits
AMBULATORY_DEPARTMENTS: tuple[Option, ...] = (
    Option("736", "Ambulatory"),
    Option("51442", "Ambulatory oncology"),
)

# Inpatient-only departments; the full catalog is these plus the ambulatory ones
_INPATIENT_DEPARTMENTS: tuple[Option, ...] = (
    Option("18", "Cardiac surgery"),
    Option("620", "Vascular surgery"),
    Option("735", "Cardiology"),
    Option("981", "Arrhythmology"),
    Option("3937", "Cardiac surgery unit"),
    Option("17828", "Emergency department (ER)"),
    Option("25119", "General surgery department"),
    Option("33965", "Hostop II"),
    Option("50549", "Clinical oncology"),
    Option("55320", "Internal medicine department"),
    Option("55321", "COVID unit"),
    Option("55322", "General intensive care"),
    Option("55323", "Trauma and orthopedics"),
    Option("55324", "Neurosurgery"),
    Option("55325", "Operating theatre"),
    Option("55326", "Oncology"),
    Option("55327", "Neurology"),
    Option("55328", "Neurological studies"),
    Option("55329", "Macrosurgery"),
    Option("55330", "Plastic surgery"),
    Option("55331", "Urology"),
    Option("55332", "Frame surgery"),
)

ALL_DEPARTMENTS: tuple[Option, ...] = AMBULATORY_DEPARTMENTS + _INPATIENT_DEPARTMENTS


REFERRAL_TYPE_LABELS: Mapping[ReferralType, str] = MappingProxyType({
    ReferralType.INPATIENT: "Inpatient",
    ReferralType.DAY_HOSPITAL: "Day hospital",
    ReferralType.PLANNED_AMBULATORY: "Planned ambulatory",
    ReferralType.SELF_REFERRAL: "Self-referral",
    ReferralType.AMBULANCE: "Ambulance",
    ReferralType.DISASTER_TRANSFER: "Transferred after disaster",
})

# Referral types per classification; the first entry is the default
REFERRAL_TYPES_BY_CLASSIFICATION: Mapping[AdmissionClassification, tuple[ReferralType, ...]] = MappingProxyType({
    AdmissionClassification.AMBULATORY: (
        ReferralType.PLANNED_AMBULATORY,
        ReferralType.DAY_HOSPITAL,
    ),
    AdmissionClassification.PLANNED_INPATIENT: (
        ReferralType.INPATIENT,
        ReferralType.DAY_HOSPITAL,
    ),
    AdmissionClassification.EMERGENCY_INPATIENT: (
        ReferralType.SELF_REFERRAL,
        ReferralType.AMBULANCE,
        ReferralType.DISASTER_TRANSFER,
    ),
})


INSURANCE_COMPANIES: tuple[Option, ...] = (
    Option("628", "National Health Agency"),
    Option("6379", "GPI Holding Insurance Company"),
    Option("6380", "Aldagi"),
    Option("6381", "Cartu Insurance Company"),
    Option("6382", "Standard Insurance"),
    Option("6383", "PSP Insurance"),
    Option("6384", "Euroins Georgia Insurance Company"),
    Option("6385", "Ardi Group Insurance Company"),
    Option("7603", "Adjara Ministry of Health and Social Protection"),
    Option("8175", "Imedi L"),
    Option("9155", "Tbilisi City Hall"),
    Option("10483", "South Ossetia Administration"),
    Option("10520", "Irao"),
    Option("11209", "Via-Vita"),
    Option("11213", "Referral Assistance Centre"),
    Option("12078", "Kakheti-Ioni"),
    Option("12461", "Penitentiary and Probation Ministry Medical Department"),
    Option("14134", "Residence Permit"),
    Option("14137", "Uninsured"),
    Option("16476", "Unison"),
    Option("16803", "Alpha"),
    Option("22108", "IGG"),
    Option("41288", "New Vision Insurance"),
    Option("46299", "Global Benefits Georgia Insurance Company"),
    Option("49974", "Ingorokva Clinic"),
    Option("51870", "Oni Municipality City Hall"),
    Option("52103", "Referral Oncology"),
    Option("54184", "Tbilisi Central Hospital"),
    Option("61677", "Solidarity Fund of Georgia, Referral Services Department"),
    Option("61768", "Akhali Mzera"),
    Option("63054", "Curatio"),
    Option("67209", "German Hospital"),
    Option("67469", "Regional Healthcare Centre"),
    Option("70867", "Agency for IDPs, Ecomigrants and Livelihood Provision"),
    Option("79541", "Gagra LLC"),
    Option("81614", "Tbilisi Heart Centre"),
    Option("86705", "Consilium Medulla"),
    Option("88950", "Georgian-American Reproductive Clinic Reproart"),
    Option("89213", "Eliava International Phage Therapy Centre"),
    Option("89718", "Geo Hospitals"),
    Option("91685", "Georgian Clinics - Khashuri Hospital"),
)

INSURANCE_TYPES: tuple[Option, ...] = (
    Option("10", "Pension"),
    Option("13", "Teacher"),
    Option("14", "Vulnerable"),
    Option("15", "Person with disability"),
    Option("17", "36-2 Emergency ambulatory (minimal)"),
    Option("18", "36-3 Emergency inpatient"),
    Option("19", "36-3 Emergency inpatient (minimal)"),
    Option("20", "36-4 Planned surgical services"),
    Option("21", "36-5 Cardiac surgery"),
    Option("22", "165-2 Emergency ambulatory"),
    Option("23", "165-3 Emergency inpatient"),
    Option("24", "165-4 Planned surgical services"),
    Option("25", "165-5 Cardiac surgery"),
    Option("26", "218-2 Emergency ambulatory"),
    Option("27", "218-3 Emergency inpatient"),
    Option("28", "218-4 Planned surgical services"),
    Option("29", "218-5 Cardiac surgery"),
    Option("30", "Corporate"),
    Option("32", "State referral services programme"),
    Option("33", "Veteran"),
    Option("36", "Tbilisi City Hall medical service"),
    Option("37", "Vascular access provision"),
    Option("38", "-"),
    Option("39", "Basic < 1000"),
    Option("40", "Basic >= 1000"),
    Option("41", "36-2 Emergency ambulatory (new)"),
    Option("42", "36-2 Emergency ambulatory (minimal) (new)"),
    Option("43", "36-3 Emergency inpatient (new)"),
    Option("44", "36-3 Emergency inpatient (minimal) (new)"),
    Option("45", "36-4 Planned surgical services (new)"),
    Option("46", "36-5 Cardiac surgery (new)"),
    Option("47", "Basic > 40000"),
    Option("48", "Minimal package"),
    Option("49", "70000 to 100000 points"),
    Option("50", "Minimal < 1000"),
    Option("51", "Minimal >= 1000"),
    Option("52", "Basic, insured as of 1 January 2017"),
    Option("53", "Basic, insured after 1 January 2017"),
    Option("54", "Emergency ambulatory 2"),
    Option("55", "Cardiac surgery 5"),
    Option("56", "Basic, ages 6 to 18"),
    Option("57", "165 Student"),
    Option("58", "DRG planned surgery"),
    Option("59", "DRG emergency inpatient"),
    Option("60", "Referral services programme, oncology co-payment component"),
    Option("61", "Chemotherapy and hormone therapy"),
    Option("62", "Cardiac surgery supplementary services subprogramme"),
    Option("63", "Agency for IDPs, Ecomigrants and Livelihood Provision"),
)


def _districts(*pairs: tuple[str, str]) -> tuple[Option, ...]:
    return tuple(Option(code, label) for code, label in pairs)


_REGIONS: tuple[Region, ...] = (
    Region("1", "01 - Abkhazia", _districts(
        ("0101", "Gagra"), ("0102", "Gali"), ("0103", "Gudauta"), ("0104", "Gulripshi"),
        ("0105", "Upper Abkhazia"), ("0106", "Ochamchire"), ("0107", "Sokhumi"),
        ("0108", "Tkvarcheli"),
    )),
    Region("10", "02 - Adjara", _districts(
        ("0201", "Batumi"), ("0202", "Keda"), ("0203", "Kobuleti"), ("0204", "Shuakhevi"),
        ("0205", "Khelvachauri"), ("0206", "Khulo"),
    )),
    Region("17", "03 - Guria", _districts(
        ("0301", "Lanchkhuti"), ("0302", "Ozurgeti"), ("0303", "Chokhatauri"),
    )),
    Region("21", "04 - Tbilisi", _districts(
        ("0401", "Gldani"), ("0402", "Gldani-Nadzaladevi"), ("0403", "Didgori"),
        ("0404", "Didube"), ("0405", "Didube-Chughureti"), ("0406", "Vake"),
        ("0407", "Vake-Saburtalo"), ("0408", "Tbilisi"), ("0409", "Isani"),
        ("0410", "Isani-Samgori"), ("0411", "Krtsanisi"), ("0412", "Mtatsminda"),
        ("0413", "Nadzaladevi"), ("0414", "Saburtalo"), ("0415", "Samgori"),
        ("0416", "Chughureti"), ("0417", "Old Tbilisi"),
    )),
    Region("39", "05 - Imereti", _districts(
        ("0501", "Baghdati"), ("0502", "Vani"), ("0503", "Zestaponi"), ("0504", "Terjola"),
        ("0505", "Samtredia"), ("0506", "Sachkhere"), ("0507", "Tkibuli"), ("0508", "Kutaisi"),
        ("0509", "Tskaltubo"), ("0510", "Chiatura"), ("0511", "Kharagauli"), ("0512", "Khoni"),
    )),
    Region("52", "06 - Kakheti", _districts(
        ("0601", "Akhmeta"), ("0602", "Gurjaani"), ("0603", "Dedoplistskaro"),
        ("0604", "Telavi"), ("0605", "Lagodekhi"), ("0606", "Sagarejo"),
        ("0607", "Sighnaghi"), ("0608", "Kvareli"),
    )),
    Region("61", "07 - Mtskheta-Mtianeti", _districts(
        ("0701", "Akhalgori"), ("0702", "Dusheti"), ("0703", "Tianeti"),
        ("0704", "Mtskheta"), ("0705", "Kazbegi"),
    )),
    Region("67", "08 - Racha-Lechkhumi and Kvemo Svaneti", _districts(
        ("0801", "Ambrolauri"), ("0802", "Lentekhi"), ("0803", "Oni"), ("0804", "Tsageri"),
    )),
    Region("72", "09 - Abroad", _districts(
        ("0901", "Abroad"),
    )),
    Region("74", "10 - Samegrelo and Zemo Svaneti", _districts(
        ("1001", "Abasha"), ("1002", "Zugdidi"), ("1003", "Martvili"), ("1004", "Mestia"),
        ("1005", "Senaki"), ("1006", "Poti"), ("1007", "Chkhorotsku"),
        ("1008", "Tsalenjikha"), ("1009", "Khobi"),
    )),
    Region("84", "11 - Samtskhe-Javakheti", _districts(
        ("1101", "Adigeni"), ("1102", "Aspindza"), ("1103", "Akhalkalaki"),
        ("1104", "Akhaltsikhe"), ("1105", "Borjomi"), ("1106", "Ninotsminda"),
    )),
    Region("91", "12 - Kvemo Kartli", _districts(
        ("1201", "Bolnisi"), ("1202", "Gardabani"), ("1203", "Dmanisi"),
        ("1204", "Tetritskaro"), ("1205", "Marneuli"), ("1206", "Rustavi"), ("1207", "Tsalka"),
    )),
    Region("99", "13 - Shida Kartli", _districts(
        ("1301", "Gori"), ("1302", "Kaspi"), ("1303", "Kareli"), ("1304", "Kurta"),
        ("1305", "Kornisi"), ("1306", "Tskhinvali"), ("1307", "Khashuri"), ("1308", "Java"),
    )),
)

REGIONS: Mapping[str, Region] = MappingProxyType({region.code: region for region in _REGIONS})

# Reverse index: district code -> owning region code
_DISTRICT_OWNER: Mapping[str, str] = MappingProxyType({
    district.value: region.code
    for region in _REGIONS
    for district in region.districts
})

REGION_OPTIONS: tuple[Option, ...] = tuple(Option(r.code, r.name) for r in _REGIONS)


EDUCATION_OPTIONS: tuple[Option, ...] = (
    Option("4", "Higher education"),
    Option("5", "Preschool education"),
    Option("6", "Primary education (grades 1-6)"),
    Option("7", "Lower secondary education (grades 7-9)"),
    Option("8", "Upper secondary education (grades 9-12)"),
    Option("9", "Vocational education"),
)

FAMILY_STATUS_OPTIONS: tuple[Option, ...] = (
    Option("1", "Single"),
    Option("2", "Married"),
    Option("3", "Divorced"),
    Option("4", "Widowed"),
    Option("5", "Cohabiting"),
)

EMPLOYMENT_OPTIONS: tuple[Option, ...] = (
    Option("1", "Employed"),
    Option("2", "Unemployed"),
    Option("3", "Retired"),
    Option("4", "Student"),
    Option("5", "Pupil"),
    Option("6", "Working after retirement"),
    Option("7", "Self-employed"),
    Option("8", "Working student"),
)


def label_for(options: tuple[Option, ...], value: str) -> Optional[str]:
    """Return the label of ``value`` in ``options``, or None if absent."""
    for option in options:
        if option.value == value:
            return option.label
    return None


def department_label(value: str) -> Optional[str]:
    """Label of a department id from the full catalog."""
    return label_for(ALL_DEPARTMENTS, value)


def region_of_district(district_code: str) -> Optional[str]:
    """Return the code of the region that owns ``district_code``."""
    return _DISTRICT_OWNER.get(district_code)
