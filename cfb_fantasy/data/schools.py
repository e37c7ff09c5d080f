"""Static catalog of the FBS schools that can be drafted.

This is reference data: it is loaded once at season setup, never edited
during a season, and identified by school name. Conference affiliation drives
conference-game detection when the score feed does not flag it; colors are
carried for the presentation layer.

Conference alignment is the 2025 season's.
"""

from dataclasses import dataclass

INDEPENDENT = "Independent"


@dataclass(frozen=True)
class School:
    """A draftable school. Identity is the name."""

    name: str
    primary_color: str
    secondary_color: str
    conference: str


# (name, primary color, secondary color, conference)
_SCHOOL_ROWS = (
    # ACC
    ("Boston College", "#98002E", "#BC9B6A", "ACC"),
    ("California", "#003262", "#FDB515", "ACC"),
    ("Clemson", "#F56600", "#522D80", "ACC"),
    ("Duke", "#003087", "#FFFFFF", "ACC"),
    ("Florida St", "#782F40", "#CEB888", "ACC"),
    ("Georgia Tech", "#B3A369", "#003057", "ACC"),
    ("Louisville", "#AD0000", "#000000", "ACC"),
    ("Miami", "#F47321", "#005030", "ACC"),
    ("NC State", "#CC0000", "#000000", "ACC"),
    ("North Carolina", "#7BAFD4", "#13294B", "ACC"),
    ("Pitt", "#003594", "#FFB81C", "ACC"),
    ("SMU", "#C8102E", "#0033A0", "ACC"),
    ("Stanford", "#8C1515", "#FFFFFF", "ACC"),
    ("Syracuse", "#F76900", "#000E54", "ACC"),
    ("Virginia", "#232D4B", "#F84C1E", "ACC"),
    ("Virginia Tech", "#630031", "#CF4420", "ACC"),
    ("Wake Forest", "#9E7E38", "#000000", "ACC"),
    # Big Ten
    ("Illinois", "#E84A27", "#13294B", "Big Ten"),
    ("Indiana", "#990000", "#EEEDEB", "Big Ten"),
    ("Iowa", "#FFCD00", "#000000", "Big Ten"),
    ("Maryland", "#E03A3E", "#FFD520", "Big Ten"),
    ("Michigan", "#00274C", "#FFCB05", "Big Ten"),
    ("Michigan St", "#18453B", "#FFFFFF", "Big Ten"),
    ("Minnesota", "#7A0019", "#FFCC33", "Big Ten"),
    ("Nebraska", "#E41C38", "#FDF2D9", "Big Ten"),
    ("Northwestern", "#4E2A84", "#FFFFFF", "Big Ten"),
    ("Ohio State", "#BB0000", "#666666", "Big Ten"),
    ("Oregon", "#154733", "#FEE123", "Big Ten"),
    ("Penn State", "#041E42", "#FFFFFF", "Big Ten"),
    ("Purdue", "#CEB888", "#000000", "Big Ten"),
    ("Rutgers", "#CC0033", "#5F6A72", "Big Ten"),
    ("UCLA", "#2D68C4", "#F2A900", "Big Ten"),
    ("USC", "#990000", "#FFC72C", "Big Ten"),
    ("Washington", "#4B2E83", "#B7A57A", "Big Ten"),
    ("Wisconsin", "#C5050C", "#FFFFFF", "Big Ten"),
    # Big 12
    ("Arizona", "#CC0033", "#003366", "Big 12"),
    ("Arizona St", "#8C1D40", "#FFC627", "Big 12"),
    ("Baylor", "#154734", "#FFB81C", "Big 12"),
    ("BYU", "#002E5D", "#FFFFFF", "Big 12"),
    ("Cincinnati", "#E00122", "#000000", "Big 12"),
    ("Colorado", "#CFB87C", "#000000", "Big 12"),
    ("Houston", "#C8102E", "#FFFFFF", "Big 12"),
    ("Iowa State", "#C8102E", "#F1BE48", "Big 12"),
    ("Kansas", "#0051BA", "#E8000D", "Big 12"),
    ("Kansas St", "#512888", "#FFFFFF", "Big 12"),
    ("Oklahoma St", "#FF7300", "#000000", "Big 12"),
    ("TCU", "#4D1979", "#A3A9AC", "Big 12"),
    ("Texas Tech", "#CC0000", "#000000", "Big 12"),
    ("UCF", "#BA9B37", "#000000", "Big 12"),
    ("Utah", "#CC0000", "#FFFFFF", "Big 12"),
    ("West Virginia", "#002855", "#EAAA00", "Big 12"),
    # SEC
    ("Alabama", "#9E1B32", "#828A8F", "SEC"),
    ("Arkansas", "#9D2235", "#FFFFFF", "SEC"),
    ("Auburn", "#0C2340", "#E87722", "SEC"),
    ("Florida", "#0021A5", "#FA4616", "SEC"),
    ("Georgia", "#BA0C2F", "#000000", "SEC"),
    ("Kentucky", "#0033A0", "#FFFFFF", "SEC"),
    ("LSU", "#461D7C", "#FDD023", "SEC"),
    ("Mississippi St", "#660000", "#FFFFFF", "SEC"),
    ("Missouri", "#F1B82D", "#000000", "SEC"),
    ("Oklahoma", "#841617", "#FDF9D8", "SEC"),
    ("Ole Miss", "#CE1126", "#14213D", "SEC"),
    ("South Carolina", "#73000A", "#000000", "SEC"),
    ("Tennessee", "#FF8200", "#FFFFFF", "SEC"),
    ("Texas", "#BF5700", "#FFFFFF", "SEC"),
    ("Texas A&M", "#500000", "#FFFFFF", "SEC"),
    ("Vanderbilt", "#866D4B", "#000000", "SEC"),
    # Pac-12
    ("Oregon St", "#DC4405", "#000000", "Pac-12"),
    ("Washington St", "#981E32", "#5E6A71", "Pac-12"),
    # Independents
    ("Notre Dame", "#0C2340", "#C99700", INDEPENDENT),
    ("UConn", "#000E2F", "#FFFFFF", INDEPENDENT),
    # American
    ("Army", "#000000", "#D4BF91", "American"),
    ("Charlotte", "#005035", "#A49665", "American"),
    ("East Carolina", "#592A8A", "#FDC82F", "American"),
    ("FAU", "#003366", "#CC0000", "American"),
    ("Memphis", "#003087", "#898D8D", "American"),
    ("Navy", "#00205B", "#C5B783", "American"),
    ("North Texas", "#00853E", "#FFFFFF", "American"),
    ("Rice", "#00205B", "#C1C6C8", "American"),
    ("South Florida", "#006747", "#CFC493", "American"),
    ("Temple", "#9D2235", "#FFFFFF", "American"),
    ("Tulane", "#006747", "#418FDE", "American"),
    ("Tulsa", "#002D72", "#C8102E", "American"),
    ("UAB", "#1E6B52", "#F4C300", "American"),
    ("UTSA", "#0C2340", "#F15A22", "American"),
    # Mountain West
    ("Air Force", "#003087", "#8A8D8F", "Mountain West"),
    ("Boise St", "#0033A0", "#D64309", "Mountain West"),
    ("Colorado St", "#1E4D2B", "#C8C372", "Mountain West"),
    ("Fresno St", "#DB0032", "#002E6D", "Mountain West"),
    ("Hawai'i", "#024731", "#FFFFFF", "Mountain West"),
    ("Nevada", "#003366", "#807F84", "Mountain West"),
    ("New Mexico", "#BA0C2F", "#A7A8AA", "Mountain West"),
    ("San Diego St", "#A6192E", "#000000", "Mountain West"),
    ("San José St", "#0055A2", "#E5A823", "Mountain West"),
    ("UNLV", "#CF0A2C", "#666666", "Mountain West"),
    ("Utah State", "#0F2439", "#A2AAAD", "Mountain West"),
    ("Wyoming", "#492F24", "#FFC425", "Mountain West"),
    # Sun Belt
    ("App State", "#222222", "#FFCC00", "Sun Belt"),
    ("Arkansas St", "#CC092F", "#000000", "Sun Belt"),
    ("Coastal", "#006F71", "#A27752", "Sun Belt"),
    ("GA Southern", "#011E41", "#87714D", "Sun Belt"),
    ("Georgia St", "#0039A6", "#C60C30", "Sun Belt"),
    ("James Madison", "#450084", "#CBB677", "Sun Belt"),
    ("Louisiana", "#CE181E", "#0A0203", "Sun Belt"),
    ("Marshall", "#00B140", "#000000", "Sun Belt"),
    ("Old Dominion", "#003057", "#7C878E", "Sun Belt"),
    ("South Alabama", "#00205B", "#BF0D3E", "Sun Belt"),
    ("Southern Miss", "#FFAB00", "#000000", "Sun Belt"),
    ("Texas St", "#501214", "#8D734A", "Sun Belt"),
    ("Troy", "#8A2432", "#B3B5B8", "Sun Belt"),
    ("UL Monroe", "#840029", "#BD955A", "Sun Belt"),
    # MAC
    ("Akron", "#041E42", "#A89968", "MAC"),
    ("Ball State", "#BA0C2F", "#FFFFFF", "MAC"),
    ("Bowling Green", "#FE5000", "#4F2C1D", "MAC"),
    ("Buffalo", "#005BBB", "#FFFFFF", "MAC"),
    ("C Michigan", "#6A0032", "#FFC82E", "MAC"),
    ("E Michigan", "#006633", "#FFFFFF", "MAC"),
    ("Kent State", "#002664", "#EAAB00", "MAC"),
    ("Miami OH", "#C3142D", "#FFFFFF", "MAC"),
    ("N Illinois", "#BA0C2F", "#000000", "MAC"),
    ("Ohio", "#00694E", "#FFFFFF", "MAC"),
    ("Toledo", "#15397F", "#FFD200", "MAC"),
    ("UMass", "#881C1C", "#000000", "MAC"),
    ("W Michigan", "#6C4023", "#B5A167", "MAC"),
    # Conference USA
    ("FIU", "#081E3F", "#B6862C", "Conference USA"),
    ("Jax State", "#CC0000", "#FFFFFF", "Conference USA"),
    ("Kennesaw St", "#FDBB30", "#000000", "Conference USA"),
    ("Liberty", "#0A254E", "#C41230", "Conference USA"),
    ("Louisiana Tech", "#002F8B", "#E31B23", "Conference USA"),
    ("MTSU", "#0066CC", "#FFFFFF", "Conference USA"),
    ("New Mexico St", "#861F41", "#FFFFFF", "Conference USA"),
    ("Sam Houston", "#F76800", "#FFFFFF", "Conference USA"),
    ("UTEP", "#041E42", "#FF8200", "Conference USA"),
    ("Western KY", "#C60C30", "#FFFFFF", "Conference USA"),
)


# Score feed team id per school, keyed by lowercased catalog name
FEED_TEAM_IDS = {
    "air force": "2005",
    "akron": "2006",
    "alabama": "333",
    "app state": "2026",
    "arizona": "12",
    "arizona st": "9",
    "arkansas": "8",
    "arkansas st": "2032",
    "army": "349",
    "auburn": "2",
    "ball state": "2050",
    "baylor": "239",
    "boise st": "68",
    "boston college": "103",
    "bowling green": "189",
    "buffalo": "2084",
    "byu": "252",
    "c michigan": "2117",
    "california": "25",
    "charlotte": "2429",
    "cincinnati": "2132",
    "clemson": "228",
    "coastal": "324",
    "colorado": "38",
    "colorado st": "36",
    "duke": "150",
    "e michigan": "2199",
    "east carolina": "151",
    "fau": "2226",
    "fiu": "2229",
    "florida": "57",
    "florida st": "52",
    "fresno st": "278",
    "ga southern": "290",
    "georgia": "61",
    "georgia st": "2247",
    "georgia tech": "59",
    "hawai'i": "62",
    "houston": "248",
    "illinois": "356",
    "indiana": "84",
    "iowa": "2294",
    "iowa state": "66",
    "james madison": "256",
    "jax state": "55",
    "kansas": "2305",
    "kansas st": "2306",
    "kennesaw st": "338",
    "kent state": "2309",
    "kentucky": "96",
    "liberty": "2335",
    "louisiana": "309",
    "louisiana tech": "2348",
    "louisville": "97",
    "lsu": "99",
    "marshall": "276",
    "maryland": "120",
    "memphis": "235",
    "miami": "2390",
    "miami oh": "193",
    "michigan": "130",
    "michigan st": "127",
    "minnesota": "135",
    "mississippi st": "344",
    "missouri": "142",
    "mtsu": "2393",
    "n illinois": "2459",
    "navy": "2426",
    "nc state": "152",
    "nebraska": "158",
    "nevada": "2440",
    "new mexico": "167",
    "new mexico st": "166",
    "north carolina": "153",
    "north texas": "249",
    "northwestern": "77",
    "notre dame": "87",
    "ohio": "195",
    "ohio state": "194",
    "oklahoma": "201",
    "oklahoma st": "197",
    "old dominion": "295",
    "ole miss": "145",
    "oregon": "2483",
    "oregon st": "204",
    "penn state": "213",
    "pitt": "221",
    "purdue": "2509",
    "rice": "242",
    "rutgers": "164",
    "sam houston": "2534",
    "san diego st": "21",
    "san josé st": "23",
    "smu": "2567",
    "south alabama": "6",
    "south carolina": "2579",
    "south florida": "58",
    "southern miss": "2572",
    "stanford": "24",
    "syracuse": "183",
    "tcu": "2628",
    "temple": "218",
    "tennessee": "2633",
    "texas": "251",
    "texas a&m": "245",
    "texas st": "326",
    "texas tech": "2641",
    "toledo": "2649",
    "troy": "2653",
    "tulane": "2655",
    "tulsa": "202",
    "uab": "5",
    "ucf": "2116",
    "ucla": "26",
    "uconn": "41",
    "ul monroe": "2433",
    "umass": "113",
    "unlv": "2439",
    "usc": "30",
    "utah": "254",
    "utah state": "328",
    "utep": "2638",
    "utsa": "2636",
    "vanderbilt": "238",
    "virginia": "258",
    "virginia tech": "259",
    "w michigan": "2711",
    "wake forest": "154",
    "washington": "264",
    "washington st": "265",
    "west virginia": "277",
    "western ky": "98",
    "wisconsin": "275",
    "wyoming": "2751",
}


class SchoolRegistry:
    """Lookup over the school catalog.

    Names are matched case-insensitively; ``get`` returns the canonical School.
    """

    def __init__(self, schools: list[School] | tuple[School, ...] | None = None):
        if schools is None:
            schools = tuple(School(*row) for row in _SCHOOL_ROWS)
        self._by_key: dict[str, School] = {}
        for school in schools:
            key = self._key(school.name)
            if key in self._by_key:
                raise ValueError(f"Duplicate school name: {school.name}")
            self._by_key[key] = school
        self._by_feed_id = {
            feed_id: self._by_key[key] for key, feed_id in FEED_TEAM_IDS.items() if key in self._by_key
        }

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, name: str) -> bool:
        return self._key(name) in self._by_key

    def __iter__(self):
        return iter(self.all())

    def get(self, name: str) -> School | None:
        return self._by_key.get(self._key(name))

    def require(self, name: str) -> School:
        school = self.get(name)
        if school is None:
            raise KeyError(f"Unknown school: {name}")
        return school

    def all(self) -> list[School]:
        return sorted(self._by_key.values(), key=lambda s: s.name)

    def names(self) -> list[str]:
        return [school.name for school in self.all()]

    def conference_of(self, name: str) -> str | None:
        school = self.get(name)
        return school.conference if school else None

    def by_conference(self) -> dict[str, list[School]]:
        grouped: dict[str, list[School]] = {}
        for school in self.all():
            grouped.setdefault(school.conference, []).append(school)
        return grouped

    def is_conference_game(self, school_a: str, school_b: str) -> bool:
        """Both schools share a conference and it is not 'Independent'."""
        conf_a = self.conference_of(school_a)
        conf_b = self.conference_of(school_b)
        return bool(conf_a and conf_a == conf_b and conf_a != INDEPENDENT)

    def by_feed_id(self, feed_id: str) -> School | None:
        """School for a score feed team id, or None for non-catalog (FCS) teams."""
        return self._by_feed_id.get(str(feed_id))
