"""Service-center directory and spoken city matching."""

from dataclasses import dataclass

from remindercall.normalize import normalize_text


@dataclass(frozen=True)
class ServiceCenter:
    id: int
    city_name: str
    branch_name: str
    branch_code: str
    address: str
    is_active: bool = True


@dataclass(frozen=True)
class BranchMatch:
    code: str
    name: str
    city: str
    address: str


SERVICE_CENTERS = (
    ServiceCenter(1, "AJMER", "AJMER", "1",
                  "F-100, Road No. 5, Riico Industrial Area, Near Power House, Palra, Ajmer"),
    ServiceCenter(2, "ALWAR", "ALWAR", "2",
                  "Khasra no. 2345, Tuleda Bye Pass, Alwar Bhiwadi Highway Alwar-301001"),
    ServiceCenter(3, "BANSWARA", "UDAIPUR", "7",
                  "Near Nayak Hotel, Udaipur - Dungarpur Link Road, Banswara-327001"),
    ServiceCenter(4, "BHARATPUR", "ALWAR", "2",
                  "Kurka house, Sewar road, Near Jain Mandir, Bharatpur (Raj.)"),
    ServiceCenter(5, "BHILWARA", "BHILWARA", "3",
                  "Kundan Complex, Sukhadiya Circle, Near Bewar Booking, Ajmer Road, Bhilwara"),
    ServiceCenter(6, "BHIWADI", "ALWAR", "2",
                  "Near Hutch Tower, Alwar Bye pass road, Bhiwadi, Distt. Alwar (Raj.)"),
    ServiceCenter(7, "DAUSA", "JAIPUR", "4",
                  "Opp. Anand Goods transport co. Near Saras Dairy Plant, Agra By Pass, N.H-11, Dausa-303303"),
    ServiceCenter(8, "DHOLPUR", "ALWAR", "2",
                  "Bharatpur Road, Layania Marriage Home, Dholpur"),
    ServiceCenter(9, "DUNGARPUR", "UDAIPUR", "7",
                  "T.P.Complex Shopno 1-2 Nr. Reliance Petrol Pump, Sagwara Road, Dungarpur"),
    ServiceCenter(10, "GONER ROAD", "JAIPUR", "4",
                  "72, Goner Turn, Agra Road, Jaipur-302004, Rajasthan."),
    ServiceCenter(11, "JAIPUR", "JAIPUR", "4",
                  "Khasra No. 1170-1175, Near Delhi Public School, Bhankrota, Ajmer Road, Jaipur, Rajasthan-302026"),
    ServiceCenter(12, "JHALAWAR", "KOTA", "5",
                  "Opp. Roop Nagar Colony, Kota Road, Jhalawar"),
    ServiceCenter(13, "JHUNJHUNU", "SIKAR", "6",
                  "Opp. Police Line, Near Railway Crossing, Phase-2, Riico, Jhunjhunu"),
    ServiceCenter(14, "KARAULI", "JAIPUR", "4",
                  "Infront of S.P. Office, Shukla Colony Corner, Mandrayal Road, Karauli"),
    ServiceCenter(15, "KEKRI", "AJMER", "1",
                  "Ajmer Road, Near Peer Baba, Near R.T.O. Office, Kekri-305404"),
    ServiceCenter(16, "KOTA", "KOTA", "5",
                  "B-259, Ipia Road No-06, Near Railway Flyover, Kota"),
    ServiceCenter(17, "KOTPUTLI", "JAIPUR", "4",
                  "C/o Old Vijay Automobile N.H.8, Teh. Kotputli, Distt. Jaipur (Raj.)"),
    ServiceCenter(18, "NEEM KA THANA", "JAIPUR", "4",
                  "Opp. Jodla Johra, Neem Ka Thana, Dist. Sikar"),
    ServiceCenter(19, "NIMBAHERA", "BHILWARA", "3",
                  "Near Mahaveer Rastaurant, Eidgah Chauraha, Udaipur Road, Nimbahera-312602"),
    ServiceCenter(20, "PRATAPGARH", "BHILWARA", "3",
                  "Ambedkar Circle, Near Anand Service Centre, Opp. Bank Of India, Pratapgarh"),
    ServiceCenter(21, "RAJSAMAND", "UDAIPUR", "7",
                  "Near Indusind Bank Ltd. Tvs Chouraha, Shrinath Hotel, Kankroli, Rajsamand"),
    ServiceCenter(22, "RAMGANJMANDI", "KOTA", "5",
                  "Near Reliance Petrol Pump, Suket Road, Ramganj Mandi."),
    ServiceCenter(23, "SIKAR", "SIKAR", "6",
                  "Opp. Parnami Motors, Near Circuit House, Jaipur Road, Sikar"),
    ServiceCenter(25, "SUJANGARH", "SIKAR", "6",
                  "Opp. Krishi Upaj Mandi, Salasar Road, Sujangarh, Distt. Churu PIN:331507"),
    ServiceCenter(26, "TONK", "JAIPUR", "4",
                  "Plot No.5, Captain Colony, Jaipur Road, Tonk, Distt. Tonk (Raj.)"),
    ServiceCenter(27, "UDAIPUR", "UDAIPUR", "7",
                  "A-83, Road No. 1, Mewar Industrial Area, Madri, Udaipur (Raj.)"),
    ServiceCenter(28, "VKIA", "JAIPUR", "4",
                  "2nd Rd, New Karni Colony, Kishan Vatika, Ganesh Nagar, Jaipur, Rajasthan 302013"),
)

# Devanagari spellings (including variants speech recognition returns
# inconsistently) and common romanized variants -> canonical Latin token
CITY_ALIASES = {
    "अजमेर": "ajmer",
    "अलवर": "alwar",
    "बांसवाड़ा": "banswara",
    "बाँसवाड़ा": "banswara",
    "भरतपुर": "bharatpur",
    "भारतपुर": "bharatpur",
    "भीलवाड़ा": "bhilwara",
    "भिलवाड़ा": "bhilwara",
    "भिवाड़ी": "bhiwadi",
    "भीवाड़ी": "bhiwadi",
    "दौसा": "dausa",
    "धौलपुर": "dholpur",
    "डूंगरपुर": "dungarpur",
    "डुंगरपुर": "dungarpur",
    "गोनेर रोड": "goner road",
    "जयपुर": "jaipur",
    "जेपुर": "jaipur",
    "झालावाड़": "jhalawar",
    "झाला वाड़": "jhalawar",
    "झुंझुनू": "jhunjhunu",
    "झुंझुनु": "jhunjhunu",
    "करौली": "karauli",
    "केकड़ी": "kekri",
    "कोटा": "kota",
    "कोटपूतली": "kotputli",
    "नीम का थाना": "neem ka thana",
    "निम्बाहेड़ा": "nimbahera",
    "प्रतापगढ़": "pratapgarh",
    "राजसमंद": "rajsamand",
    "राजसमन्द": "rajsamand",
    "रामगंजमंडी": "ramganjmandi",
    "रामगंज मंडी": "ramganjmandi",
    "सीकर": "sikar",
    "सिकर": "sikar",
    "सुजानगढ़": "sujangarh",
    "टोंक": "tonk",
    "उदयपुर": "udaipur",
    "वीकेआईए": "vkia",
    "ramganj mandi": "ramganjmandi",
    "jeypur": "jaipur",
    "jhunjhunun": "jhunjhunu",
    "neem ka thana": "neem ka thana",
    "neemkathana": "neem ka thana",
}

# Cities offered as spoken examples when asking where the machine is
EXAMPLE_CITIES = ("Jaipur", "Kota", "Ajmer", "Alwar", "Sikar", "Udaipur")


def _translate_aliases(text: str) -> str:
    # Longest alias first so "रामगंज मंडी" wins over any shorter overlap.
    lowered = text.lower()
    for alias in sorted(CITY_ALIASES, key=len, reverse=True):
        if alias in lowered:
            lowered = lowered.replace(alias, f" {CITY_ALIASES[alias]} ")
    return lowered


def _candidate_tokens(centers) -> list[tuple[str, ServiceCenter]]:
    active = [c for c in centers if c.is_active]
    candidates = [(normalize_text(c.city_name), c) for c in active]
    # A branch name only stands in for a city when no center carries it as its
    # own city, so "Jaipur" resolves to the Jaipur center rather than Dausa.
    city_tokens = {token for token, _ in candidates}
    for center in active:
        branch_token = normalize_text(center.branch_name)
        if branch_token not in city_tokens:
            candidates.append((branch_token, center))
            city_tokens.add(branch_token)
    # Longest token first keeps a short name from matching inside a longer one.
    candidates.sort(key=lambda c: len(c[0]), reverse=True)
    return candidates


def match_branch(raw: str | None, centers=SERVICE_CENTERS) -> BranchMatch | None:
    """Match a spoken city or branch name against the service-center directory.

    Works for Devanagari and romanized input alike:
    "जयपुर" and "Jaipur" both resolve to branch code "4".
    """
    if not raw:
        return None
    text = normalize_text(_translate_aliases(raw))
    if not text:
        return None

    for token, center in _candidate_tokens(centers):
        if token and token in text:
            return BranchMatch(
                code=center.branch_code,
                name=center.branch_name,
                city=center.city_name,
                address=center.address,
            )
    return None


def city_examples() -> str:
    """Spoken example list, e.g. "Jaipur, Kota, Ajmer, Alwar, Sikar ya Udaipur"."""
    return ", ".join(EXAMPLE_CITIES[:-1]) + f" ya {EXAMPLE_CITIES[-1]}"
