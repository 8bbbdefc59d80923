from commerce_ops.application.quotes import suggest_quote


class TestSuggestQuote:
    def test_empty_details(self):
        assert suggest_quote(None) == {"amount": 0, "monthly": 0, "breakdown": []}

    def test_website_with_features_and_pages(self):
        quote = suggest_quote(
            {
                "services": ["WEBSITE"],
                "features": ["blog", "shop", "search"],
                "pages": "20-50 pages",
                "hasDesign": "Yes, I have designs",
            }
        )
        assert quote["amount"] == 2500 + 1500 + 2000
        assert quote["monthly"] == 0

    def test_large_app_without_design(self):
        quote = suggest_quote(
            {"services": ["IOS_APP", "ANDROID_APP"], "screens": "50+ screens", "hasDesign": "Just an idea"}
        )
        assert quote["amount"] == 8000 + 7500 + 6000 + 2000
        assert [line["item"] for line in quote["breakdown"]][-1] == "design assistance"

    def test_ai_only_is_monthly(self):
        quote = suggest_quote({"services": ["AI_AUTOMATION"]})
        assert quote["amount"] == 0
        assert quote["monthly"] == 799
        assert quote["breakdown"] == [{"item": "AI_AUTOMATION", "amount": 799, "monthly": True}]

    def test_unknown_services_and_brackets_add_nothing(self):
        quote = suggest_quote({"services": ["CONSULTING"], "pages": "1-5", "screens": "under 10"})
        assert quote["amount"] == 0

    def test_deterministic(self):
        details = {"services": ["CROSS_PLATFORM"], "features": ["chat"], "screens": "25-50"}
        assert suggest_quote(details) == suggest_quote(dict(details))
