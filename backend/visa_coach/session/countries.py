from dataclasses import dataclass


@dataclass(frozen=True)
class CountryConfig:
    route: str
    country: str
    name: str
    question_count: int
    answer_time_sec: float
    prep_time_sec: float = 0.0


USA_F1 = CountryConfig(
    route="usa_f1",
    country="usa",
    name="USA F1 Student Visa",
    question_count=8,
    answer_time_sec=30.0,
)

UK_STUDENT = CountryConfig(
    route="uk_student",
    country="uk",
    name="UK Student Visa",
    question_count=15,
    answer_time_sec=90.0,
    prep_time_sec=15.0,
)

FRANCE_EMA = CountryConfig(
    route="france_ema",
    country="france",
    name="France Student Visa (EMA)",
    question_count=15,
    answer_time_sec=90.0,
    prep_time_sec=30.0,
)

FRANCE_ICN = CountryConfig(
    route="france_icn",
    country="france",
    name="France Student Visa (ICN)",
    question_count=10,
    answer_time_sec=90.0,
    prep_time_sec=30.0,
)

COUNTRY_CONFIGS: dict[str, CountryConfig] = {
    config.route: config for config in (USA_F1, UK_STUDENT, FRANCE_EMA, FRANCE_ICN)
}

# bare country codes resolve to that country's default route
ROUTE_ALIASES = {
    "usa": "usa_f1",
    "uk": "uk_student",
    "france": "france_ema",
}


class UnknownRouteError(ValueError):
    pass


def get_country_config(route: str) -> CountryConfig:
    key = str(route or "").strip().lower()
    key = ROUTE_ALIASES.get(key, key)
    if key not in COUNTRY_CONFIGS:
        raise UnknownRouteError(f"Unknown interview route: {route!r}")
    return COUNTRY_CONFIGS[key]
