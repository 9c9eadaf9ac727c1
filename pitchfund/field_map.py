# pitchfund/field_map.py

FIELD_LABELS = {
    # Deal terms (wizard step 0)
    "name":                  "Company name",
    "slug":                  "Slug",
    "description_raw":       "Company description",
    "investment_date":       "Investment date",
    "investment_amount":     "Investment amount",
    "instrument":            "Investment instrument",
    "stage_at_investment":   "Stage at investment",
    "round_size_usd":        "Round size",
    "fund":                  "Fund",
    "reason_for_investing":  "Reason for investing",
    "country_of_incorp":     "Country of incorporation",
    "incorporation_type":    "Incorporation type",
    "conversion_cap_usd":    "Conversion cap",
    "discount_percent":      "Discount percentage",
    "post_money_valuation":  "Post-money valuation",
    "has_pro_rata_rights":   "Pro-rata rights",
    "co_investors":          "Co-investors",

    # Company profile (wizard step 1)
    "tagline":               "Tagline",
    "website_url":           "Website URL",
    "founder_email":         "Founder email",
    "founder_name":          "Founder name",
    "status":                "Status",
}

STEP_FIELDS = {
    0: [
        "name", "slug", "description_raw",
        "investment_date", "investment_amount",
        "instrument", "stage_at_investment", "round_size_usd", "fund",
        "reason_for_investing", "country_of_incorp", "incorporation_type",
        "conversion_cap_usd", "discount_percent", "post_money_valuation",
        "has_pro_rata_rights", "co_investors",
    ],
    1: [
        "tagline", "website_url",
        "founder_email", "founder_name",
        "status",
    ],
}

# Parsed from form strings before validation
NUMERIC_FIELDS = [
    "investment_amount", "round_size_usd",
    "conversion_cap_usd", "discount_percent", "post_money_valuation",
]

# Empty strings survive normalization here so "required" fires instead of a default
REQUIRED_FIELDS = [
    "name", "slug", "tagline", "description_raw", "website_url",
    "investment_date", "investment_amount", "instrument", "stage_at_investment",
    "round_size_usd", "reason_for_investing", "country_of_incorp",
    "incorporation_type", "founder_email",
]

TRIMMED_FIELDS = [
    "name", "slug", "tagline", "description_raw", "website_url",
    "reason_for_investing", "founder_email", "founder_name",
]

COUNTRY_CODE_FIELDS = ["country_of_incorp"]

SAFE_INSTRUMENTS = ("safe_post", "safe_pre", "convertible_note")
EQUITY_INSTRUMENTS = ("equity",)

INSTRUMENTS = SAFE_INSTRUMENTS + EQUITY_INSTRUMENTS

SAFE_TERMS = ("conversion_cap_usd", "discount_percent")
EQUITY_TERMS = ("post_money_valuation",)

CONDITIONAL_MESSAGES = {
    "conversion_cap_usd":   "Conversion cap is required for SAFE and convertible note investments",
    "discount_percent":     "Discount percentage is required for SAFE and convertible note investments",
    "post_money_valuation": "Post-money valuation is required for equity investments",
}
