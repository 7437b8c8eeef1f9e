"""
Deterministic mock generators for the provider adapters.

Curated catalogs cover a few well-known family destinations; any other
location gets plausible records synthesized from templates. Generators
seed their randomness from the query, so the same query always yields
the same records.
"""

import random
from datetime import datetime, time, timedelta

from family_trip_planner.data.models import (
    Accommodation,
    AccommodationQuery,
    AccommodationType,
    Attraction,
    AttractionQuery,
    Flight,
    FlightQuery,
    Place,
    PlaceQuery,
    WeatherQuery,
    WeatherReport,
)
from family_trip_planner.utils.helpers import round_money, stable_seed

ALIASES = {
    "orlando": "orlando",
    "walt disney world": "orlando",
    "disney world": "orlando",
    "mco": "orlando",
    "paris": "paris",
    "cdg": "paris",
    "tokyo": "tokyo",
    "hnd": "tokyo",
    "nrt": "tokyo",
    "maui": "maui",
    "hawaii": "maui",
    "ogg": "maui",
}

# key: (airport, base fare per person, flight minutes from the US east coast)
ROUTES = {
    "orlando": ("MCO", 235.0, 165),
    "paris": ("CDG", 640.0, 445),
    "tokyo": ("HND", 980.0, 840),
    "maui": ("OGG", 560.0, 660),
}

# (name, category, description, rating, reviews, price_min, price_max,
#  duration_minutes, min_age, max_age, tags)
ATTRACTIONS = {
    "orlando": [
        ("Magic Kingdom Park", "theme_park", "Classic Disney castle park with rides for every age.", 4.8, 98000, 109, 189, 480, 0, 99, ["theme parks", "rides", "characters"]),
        ("Universal Islands of Adventure", "theme_park", "Thrill rides and the Wizarding World of Harry Potter.", 4.7, 64000, 119, 199, 420, 4, 99, ["theme parks", "rides", "adventure"]),
        ("EPCOT", "theme_park", "Future World attractions and the World Showcase pavilions.", 4.6, 52000, 109, 179, 420, 0, 99, ["theme parks", "culture", "food"]),
        ("SeaWorld Orlando", "zoo", "Marine life shows, aquariums and coasters.", 4.4, 41000, 89, 139, 360, 0, 99, ["animals", "theme parks", "shows"]),
        ("Kennedy Space Center Visitor Complex", "museum", "Rockets, astronaut encounters and the Space Shuttle Atlantis.", 4.7, 38000, 75, 75, 300, 5, 99, ["science", "museums", "history"]),
        ("Gatorland", "zoo", "Alligators, a zip line and a splash park.", 4.5, 12000, 35, 35, 180, 0, 99, ["animals", "nature", "outdoors"]),
        ("Disney Springs", "shopping", "Open-air shopping, dining and street performers.", 4.6, 30000, 0, 0, 180, 0, 99, ["shopping", "food"]),
        ("Volcano Bay Water Park", "water_park", "Tropical water theme park with lazy rivers.", 4.4, 15000, 80, 110, 300, 3, 99, ["water parks", "beaches", "theme parks"]),
    ],
    "paris": [
        ("Eiffel Tower", "landmark", "Iconic tower with views across Paris.", 4.6, 140000, 29, 29, 150, 0, 99, ["landmarks", "history", "views"]),
        ("Louvre Museum", "museum", "World's largest art museum, home of the Mona Lisa.", 4.7, 110000, 22, 22, 240, 6, 99, ["museums", "art", "history"]),
        ("Disneyland Paris", "theme_park", "Two Disney parks east of the city.", 4.5, 60000, 89, 139, 480, 0, 99, ["theme parks", "rides", "characters"]),
        ("Jardin d'Acclimatation", "park", "Amusement park and gardens in the Bois de Boulogne.", 4.4, 18000, 7, 40, 240, 0, 12, ["outdoors", "rides", "nature"]),
        ("Cité des Sciences et de l'Industrie", "museum", "Hands-on science museum with a children's city.", 4.5, 25000, 12, 15, 210, 2, 99, ["science", "museums"]),
        ("Seine River Cruise", "tour", "One-hour boat cruise past the city's monuments.", 4.5, 42000, 17, 17, 60, 0, 99, ["sightseeing", "views"]),
        ("Luxembourg Gardens", "park", "Formal gardens with toy sailboats and a puppet theatre.", 4.7, 55000, 0, 0, 120, 0, 99, ["outdoors", "nature", "parks"]),
    ],
    "tokyo": [
        ("Tokyo Disneyland", "theme_park", "Disney park with parades and classic rides.", 4.6, 70000, 60, 75, 480, 0, 99, ["theme parks", "rides", "characters"]),
        ("teamLab Planets", "museum", "Immersive digital art you walk through barefoot.", 4.6, 30000, 25, 30, 120, 0, 99, ["art", "museums", "science"]),
        ("Ueno Zoo", "zoo", "Japan's oldest zoo with giant pandas.", 4.3, 28000, 4, 4, 180, 0, 99, ["animals", "nature"]),
        ("Senso-ji Temple", "landmark", "Tokyo's oldest temple and the Nakamise shopping street.", 4.6, 90000, 0, 0, 120, 0, 99, ["history", "culture", "shopping"]),
        ("Ghibli Museum", "museum", "Whimsical museum of Studio Ghibli animation.", 4.6, 20000, 7, 7, 150, 4, 99, ["museums", "art", "movies"]),
        ("Tokyo Skytree", "landmark", "Observation decks 450 metres above the city.", 4.5, 50000, 20, 30, 120, 0, 99, ["views", "landmarks"]),
        ("Odaiba Seaside Park", "park", "Man-made beach with views of the Rainbow Bridge.", 4.4, 15000, 0, 0, 150, 0, 99, ["beaches", "outdoors", "parks"]),
    ],
    "maui": [
        ("Maui Ocean Center", "zoo", "Aquarium focused on Hawaiian marine life.", 4.5, 16000, 40, 50, 180, 0, 99, ["animals", "science"]),
        ("Haleakala National Park", "park", "Volcanic crater with sunrise views.", 4.8, 20000, 30, 30, 300, 5, 99, ["nature", "outdoors", "adventure"]),
        ("Road to Hana Tour", "tour", "Waterfalls and rainforest along the coast road.", 4.7, 14000, 150, 220, 600, 6, 99, ["nature", "adventure", "sightseeing"]),
        ("Ka'anapali Beach", "beach", "Long golden beach with calm swimming.", 4.7, 25000, 0, 0, 240, 0, 99, ["beaches", "outdoors"]),
        ("Molokini Snorkel Cruise", "tour", "Snorkeling in a crescent volcanic crater.", 4.7, 11000, 100, 160, 300, 6, 99, ["beaches", "adventure", "animals"]),
        ("Old Lahaina Luau", "show", "Traditional Hawaiian feast and hula show.", 4.8, 13000, 120, 180, 180, 0, 99, ["culture", "food", "shows"]),
    ],
}

ATTRACTION_TEMPLATES = [
    ("{loc} Children's Museum", "museum", "Hands-on exhibits designed for kids.", 60, 14, 18, 150, 1, 12, ["museums", "science"]),
    ("{loc} Zoo", "zoo", "Animals from around the world and a petting farm.", 55, 20, 28, 240, 0, 99, ["animals", "nature"]),
    ("{loc} Aquarium", "zoo", "Touch pools, sharks and jellyfish galleries.", 50, 25, 32, 150, 0, 99, ["animals", "science"]),
    ("{loc} Science Center", "museum", "Interactive science exhibits and a planetarium.", 45, 18, 24, 180, 4, 99, ["science", "museums"]),
    ("{loc} Botanical Garden", "park", "Themed gardens with a children's discovery trail.", 40, 10, 15, 120, 0, 99, ["nature", "outdoors", "parks"]),
    ("{loc} Old Town Walking Tour", "tour", "Guided family walk through the historic center.", 35, 15, 25, 120, 5, 99, ["history", "culture", "sightseeing"]),
    ("{loc} Adventure Park", "theme_park", "Rides, mini golf and go-karts.", 30, 35, 60, 240, 3, 99, ["theme parks", "rides", "adventure"]),
    ("{loc} Waterfront Park", "park", "Playgrounds, splash pads and picnic lawns.", 30, 0, 0, 120, 0, 99, ["outdoors", "parks", "beaches"]),
    ("{loc} History Museum", "museum", "Local history told through family-friendly galleries.", 25, 12, 16, 150, 6, 99, ["history", "museums"]),
    ("{loc} Food Market Tour", "food", "Tasting tour of local specialties.", 20, 40, 55, 150, 6, 99, ["food", "culture"]),
]

# (name, types, rating, price_level)
PLACES = {
    "orlando": [
        ("Lake Eola Park", ["park", "playground"], 4.7, 0),
        ("Chef Mickey's", ["restaurant", "family_dining"], 4.4, 3),
        ("Crayola Experience", ["amusement_park", "museum"], 4.3, 2),
        ("Orlando Science Center", ["museum", "science"], 4.7, 2),
    ],
    "paris": [
        ("Parc des Buttes-Chaumont", ["park", "playground"], 4.7, 0),
        ("Le Relais de l'Entrecôte", ["restaurant"], 4.4, 2),
        ("Ménagerie du Jardin des Plantes", ["zoo", "park"], 4.3, 1),
        ("Musée Grévin", ["museum"], 4.2, 2),
    ],
    "tokyo": [
        ("Shinjuku Gyoen National Garden", ["park"], 4.7, 1),
        ("Kidzania Tokyo", ["amusement_park", "museum"], 4.4, 2),
        ("Ichiran Shibuya", ["restaurant"], 4.5, 1),
        ("Pokémon Center Mega Tokyo", ["store", "shopping"], 4.5, 2),
    ],
    "maui": [
        ("Baldwin Beach Park", ["park", "beach"], 4.7, 0),
        ("Mama's Fish House", ["restaurant"], 4.7, 4),
        ("Maui Tropical Plantation", ["park", "tourist_attraction"], 4.4, 1),
        ("Whalers Village", ["shopping_mall", "store"], 4.4, 2),
    ],
}

PLACE_TEMPLATES = [
    ("{loc} Central Park", ["park", "playground"], 4.6, 0),
    ("{loc} Family Diner", ["restaurant", "family_dining"], 4.2, 1),
    ("{loc} Public Library Kids Corner", ["library"], 4.5, 0),
    ("{loc} Ice Cream Parlor", ["cafe", "food"], 4.6, 1),
    ("{loc} Trampoline Park", ["amusement_park"], 4.3, 2),
    ("{loc} Farmers Market", ["market", "food"], 4.4, 1),
]

AIRLINES = [
    ("Delta", "DL"),
    ("American Airlines", "AA"),
    ("United", "UA"),
    ("JetBlue", "B6"),
    ("Southwest", "WN"),
]

# (name, type, nightly rate, rating, amenities, max occupancy)
STAYS = {
    "orlando": [
        ("Disney's Grand Floridian Resort & Spa", AccommodationType.RESORT, 450, 4.7, ["pool", "spa", "kids_club", "park_shuttle"], 5),
        ("Holiday Inn Orlando - Disney Springs", AccommodationType.HOTEL, 180, 4.2, ["pool", "free_breakfast", "park_shuttle"], 4),
        ("Lake Buena Vista Family Condos", AccommodationType.APARTMENT, 165, 4.4, ["kitchen", "pool", "washer"], 6),
        ("Windsor Hills Pool Villa", AccommodationType.VILLA, 320, 4.6, ["private_pool", "kitchen", "game_room"], 8),
    ],
    "paris": [
        ("Hôtel Le Marais Familial", AccommodationType.HOTEL, 240, 4.3, ["family_rooms", "free_breakfast"], 4),
        ("Disneyland Hotel Paris", AccommodationType.RESORT, 520, 4.6, ["pool", "kids_club", "park_access"], 5),
        ("Saint-Germain Family Apartment", AccommodationType.APARTMENT, 210, 4.5, ["kitchen", "washer", "crib"], 5),
    ],
    "tokyo": [
        ("Hotel Gracery Shinjuku", AccommodationType.HOTEL, 190, 4.3, ["family_rooms", "restaurant"], 4),
        ("Tokyo Disney Resort Hotel", AccommodationType.RESORT, 480, 4.7, ["park_shuttle", "kids_club"], 5),
        ("Asakusa Family Apartment", AccommodationType.APARTMENT, 150, 4.4, ["kitchen", "washer"], 5),
    ],
    "maui": [
        ("Hyatt Regency Maui Resort", AccommodationType.RESORT, 430, 4.6, ["pool", "water_slides", "kids_club", "beach_access"], 5),
        ("Kihei Beach Condo", AccommodationType.APARTMENT, 260, 4.5, ["kitchen", "pool", "beach_access"], 6),
        ("Maui Coast Hotel", AccommodationType.HOTEL, 240, 4.3, ["pool", "free_parking"], 4),
        ("Wailea Ocean Villa", AccommodationType.VILLA, 690, 4.8, ["private_pool", "kitchen", "ocean_view"], 8),
    ],
}

STAY_TEMPLATES = [
    ("{loc} Grand Hotel", AccommodationType.HOTEL, 220, 4.3, ["pool", "restaurant", "family_rooms"], 4),
    ("{loc} Budget Inn", AccommodationType.HOTEL, 110, 3.8, ["free_breakfast", "free_parking"], 4),
    ("{loc} Family Suites", AccommodationType.APARTMENT, 160, 4.4, ["kitchen", "washer", "crib"], 6),
    ("{loc} Garden Resort", AccommodationType.RESORT, 340, 4.5, ["pool", "kids_club", "spa"], 5),
    ("{loc} Villa Retreat", AccommodationType.VILLA, 420, 4.6, ["private_pool", "kitchen", "garden"], 8),
]

# (temperature C, humidity %, wind m/s, condition, description)
CLIMATES = {
    "orlando": (29.0, 74, 3.6, "Clear", "sunny with afternoon clouds"),
    "paris": (18.0, 65, 4.1, "Clouds", "partly cloudy"),
    "tokyo": (22.0, 70, 3.2, "Clouds", "overcast"),
    "maui": (27.0, 68, 5.5, "Clear", "sunny with trade winds"),
}

CONDITIONS = [
    ("Clear", "clear sky"),
    ("Clouds", "scattered clouds"),
    ("Rain", "light rain"),
    ("Clouds", "broken clouds"),
]


def catalog_key(location: str) -> str | None:
    """
    Map a free-text location onto a curated catalog.

    "Orlando, FL", "Walt Disney World" and "MCO" all map to "orlando".
    """
    text = location.strip().lower()
    if text in ALIASES:
        return ALIASES[text]
    head = text.split(",")[0].strip()
    if head in ALIASES:
        return ALIASES[head]
    for alias, key in ALIASES.items():
        if len(alias) > 3 and alias in text:
            return key
    return None


def display_name(location: str) -> str:
    """City part of a location, title-cased for synthesized names."""
    head = location.split(",")[0].strip()
    return head if any(c.isupper() for c in head) else head.title()


def airport_code(location: str) -> str:
    """IATA code for curated destinations, a stable three-letter code otherwise."""
    text = location.strip()
    if len(text) == 3 and text.isalpha():
        return text.upper()
    key = catalog_key(text)
    if key:
        return ROUTES[key][0]
    letters = [c for c in display_name(text).upper() if c.isalpha()]
    return "".join(letters[:3]).ljust(3, "X")


def mock_attractions(query: AttractionQuery) -> list[Attraction]:
    """Attractions for a location, filtered and sorted per the query."""
    key = catalog_key(query.location)
    loc = display_name(query.location)
    rng = random.Random(stable_seed("attractions", query.location))

    if key:
        rows = ATTRACTIONS[key]
    else:
        rows = []
        for name, category, desc, reviews, pmin, pmax, duration, amin, amax, tags in ATTRACTION_TEMPLATES:
            rating = round(3.9 + rng.random() * 0.9, 1)
            rows.append(
                (name.format(loc=loc), category, desc, rating, reviews * 100 + rng.randint(0, 900), pmin, pmax, duration, amin, amax, tags)
            )

    results = []
    for row in rows:
        name, category, desc, rating, reviews, pmin, pmax, duration, amin, amax, tags = row
        results.append(
            Attraction(
                id=f"ta-{stable_seed(query.location, name) % 10_000_000}",
                name=name,
                location=query.location,
                category=category,
                description=desc,
                rating=rating,
                review_count=reviews,
                price_min=pmin,
                price_max=pmax,
                duration_minutes=duration,
                min_age=amin,
                max_age=amax,
                tags=list(tags),
                latitude=round(rng.uniform(-60, 60), 4),
                longitude=round(rng.uniform(-150, 150), 4),
                source="mock",
            )
        )

    if query.category:
        results = [a for a in results if a.category == query.category]
    if query.min_rating is not None:
        results = [a for a in results if a.rating >= query.min_rating]
    if query.sort == "price":
        results.sort(key=lambda a: (a.price_min, -a.rating))
    elif query.sort == "popularity":
        results.sort(key=lambda a: -a.review_count)
    else:
        results.sort(key=lambda a: (-a.rating, -a.review_count))
    return results[: query.limit]


def _type_matches(place: Place, text: str) -> int:
    return sum(1 for t in place.types if t.replace("_", " ") in text)


def mock_places(query: PlaceQuery) -> list[Place]:
    """Places near a location, with types matching the query text first."""
    location = query.location or query.query or ""
    key = catalog_key(location)
    loc = display_name(location)
    rng = random.Random(stable_seed("places", location, query.query))

    rows = PLACES[key] if key else [
        (name.format(loc=loc), types, rating, price) for name, types, rating, price in PLACE_TEMPLATES
    ]
    places = [
        Place(
            id=f"gp-{stable_seed(location, name) % 10_000_000}",
            name=name,
            address=f"{rng.randint(1, 999)} Main Street, {loc}",
            types=list(types),
            rating=rating,
            user_ratings_total=rng.randint(200, 20000),
            price_level=price,
            latitude=round(rng.uniform(-60, 60), 4),
            longitude=round(rng.uniform(-150, 150), 4),
            open_now=True,
            source="mock",
        )
        for name, types, rating, price in rows
    ]

    if query.type:
        places = [p for p in places if query.type in p.types]
    if query.query:
        text = query.query.lower()
        places.sort(key=lambda p: (-_type_matches(p, text), -p.rating))
    return places[: query.limit]


def mock_flights(query: FlightQuery) -> list[Flight]:
    """Round-trip (or one-way) fares for the whole party."""
    key = catalog_key(query.destination)
    rng = random.Random(
        stable_seed("flights", query.origin, query.destination, query.departure_date)
    )
    if key:
        _, base_fare, minutes = ROUTES[key]
    else:
        base_fare = 280.0 + rng.randint(0, 40) * 10
        minutes = 150 + rng.randint(0, 16) * 15

    origin = airport_code(query.origin)
    destination = airport_code(query.destination)
    round_trip = 1.0 if query.return_date else 0.6

    flights = []
    for index, (airline, code) in enumerate(AIRLINES):
        stops = 0 if index < 3 else 1
        factor = 0.85 + rng.random() * 0.4 - (0.15 if stops else 0.0)
        per_person = round_money(base_fare * factor * round_trip)
        duration = minutes + (90 if stops else 0)
        departs = datetime.combine(query.departure_date, time(6 + index * 3, 15 * (index % 4)))
        returns = (
            datetime.combine(query.return_date, time(8 + index * 2, 0))
            if query.return_date
            else None
        )
        flights.append(
            Flight(
                id=f"sk-{code}{stable_seed(origin, destination, query.departure_date, code) % 100000}",
                airline=airline,
                flight_number=f"{code}{100 + rng.randint(0, 1899)}",
                origin=origin,
                destination=destination,
                departure_time=departs,
                arrival_time=departs + timedelta(minutes=duration),
                return_departure_time=returns,
                duration_minutes=duration,
                stops=stops,
                cabin_class=query.cabin_class,
                price_per_person=per_person,
                total_price=round_money(per_person * query.passengers),
                currency=query.currency,
                source="mock",
            )
        )

    flights.sort(key=lambda f: f.total_price)
    return flights[: query.limit]


def mock_accommodations(query: AccommodationQuery) -> list[Accommodation]:
    """Stays for the date range, priced for the whole trip."""
    key = catalog_key(query.location)
    loc = display_name(query.location)
    rng = random.Random(stable_seed("stays", query.location, query.check_in))
    nights = query.nights

    rows = STAYS[key] if key else [
        (name.format(loc=loc), kind, rate, rating, amenities, occupancy)
        for name, kind, rate, rating, amenities, occupancy in STAY_TEMPLATES
    ]

    stays = []
    for name, kind, rate, rating, amenities, occupancy in rows:
        nightly = rate if key else round_money(rate * (0.9 + rng.random() * 0.2))
        stays.append(
            Accommodation(
                id=f"bk-{stable_seed(query.location, name) % 10_000_000}",
                name=name,
                type=kind,
                location=query.location,
                address=f"{rng.randint(1, 999)} Resort Boulevard, {loc}",
                rating=rating,
                review_count=rng.randint(300, 12000),
                price_per_night=nightly,
                nights=nights,
                total_price=round_money(nightly * nights * query.rooms),
                amenities=list(amenities),
                family_friendly=True,
                max_occupancy=occupancy * query.rooms,
                distance_to_center_km=round(rng.uniform(0.5, 15.0), 1),
                source="mock",
            )
        )

    if query.max_price is not None:
        stays = [s for s in stays if s.price_per_night <= query.max_price]
    if query.accommodation_type is not None:
        stays = [s for s in stays if s.type == query.accommodation_type]
    stays.sort(key=lambda s: (s.total_price, -s.rating))
    return stays[: query.limit]


def mock_weather(query: WeatherQuery) -> WeatherReport:
    """Current conditions for a location."""
    key = catalog_key(query.location)
    rng = random.Random(stable_seed("weather", query.location))
    if key:
        temp_c, humidity, wind, condition, description = CLIMATES[key]
    else:
        temp_c = float(8 + rng.randint(0, 22))
        humidity = 40 + rng.randint(0, 45)
        wind = round(1.0 + rng.random() * 6.0, 1)
        condition, description = CONDITIONS[rng.randrange(len(CONDITIONS))]

    feels_like = temp_c + (2.0 if humidity > 70 else -1.0)
    if query.units == "imperial":
        temperature = round(temp_c * 9 / 5 + 32, 1)
        feels_like = round(feels_like * 9 / 5 + 32, 1)
        wind = round(wind * 2.237, 1)
    else:
        temperature = temp_c

    return WeatherReport(
        location=query.location,
        temperature=temperature,
        feels_like=feels_like,
        condition=condition,
        description=description,
        humidity=humidity,
        wind_speed=wind,
        units=query.units,
        source="mock",
    )
