# tests/test_site_profiles.py

import pytest
from bs4 import BeautifulSoup

from scrapers.errors import ConfigurationError, UnknownSiteError
from scrapers.site_profiles import (
    SITE_REGISTRY,
    SelectorSet,
    SiteExtractionStrategy,
    SiteProfile,
    SiteRegistry,
)


def test_core_sites_registered():
    for site_id in ("seek", "indeed", "linkedin"):
        assert site_id in SITE_REGISTRY
        assert SITE_REGISTRY.lookup(site_id).site_id == site_id


def test_required_selectors_non_empty_for_every_site():
    for site_id in SITE_REGISTRY.site_ids():
        profile = SITE_REGISTRY.lookup(site_id)
        for name, selector in profile.selectors.required().items():
            assert selector.strip(), f"{site_id}.{name} is empty"
        assert profile.selectors.next_page_button.strip()


def test_unknown_site_is_configuration_error():
    with pytest.raises(UnknownSiteError) as exc_info:
        SITE_REGISTRY.lookup("monsterjobs")
    assert isinstance(exc_info.value, ConfigurationError)
    assert "monsterjobs" in str(exc_info.value)
    assert "seek" in exc_info.value.valid_sites


def test_seek_search_url_encodes_term_and_location():
    url = SITE_REGISTRY.lookup("seek").build_search_url("Frontend Developer", "Perth, WA")
    assert url == "https://www.seek.com.au/jobs?keywords=Frontend+Developer&where=Perth%2C+WA"


def test_search_url_without_location_param():
    profile = SiteProfile(
        site_id="plain",
        search_url_template="https://jobs.example.com/search?q=",
        selectors=SelectorSet(title=".t", company=".c", description=".d", link=".t", next_page_button=".n"),
        strategy=SiteExtractionStrategy(),
    )
    assert profile.build_search_url("C++ dev", "Perth, WA") == "https://jobs.example.com/search?q=C%2B%2B+dev"


def test_registry_rejects_missing_required_selector():
    broken = SiteProfile(
        site_id="broken",
        search_url_template="https://x/?q=",
        selectors=SelectorSet(title=".t", company="", description=".d", link=".t", next_page_button=".n"),
        strategy=SiteExtractionStrategy(),
    )
    with pytest.raises(ConfigurationError, match="company"):
        SiteRegistry([broken])


def test_registry_rejects_duplicates():
    seek = SITE_REGISTRY.lookup("seek")
    with pytest.raises(ConfigurationError, match="Duplicate"):
        SiteRegistry([seek, seek])


def test_indeed_strategy_resolves_card_and_relative_link():
    html = """
    <div class="job_seen_beacon">
      <h2 class="jobTitle"><a class="jcs-JobTitle" href="/rc/clk?jk=abc"><span>Data Engineer</span></a></h2>
      <span class="companyName">Initech</span>
    </div>
    """
    soup = BeautifulSoup(html, "lxml")
    profile = SITE_REGISTRY.lookup("indeed")
    title_el = soup.select_one(profile.selectors.title)

    container = profile.strategy.resolve_container(title_el)
    assert profile.strategy.resolve_field(container, profile.selectors.company) == "Initech"
    assert (
        profile.strategy.resolve_url(title_el, profile.selectors.link)
        == "https://www.indeed.com/rc/clk?jk=abc"
    )


def test_missing_href_falls_back_to_origin():
    soup = BeautifulSoup('<div class="job-card-container"><span class="job-card-list__title">X</span></div>', "lxml")
    profile = SITE_REGISTRY.lookup("linkedin")
    title_el = soup.select_one(profile.selectors.title)
    assert profile.strategy.resolve_url(title_el, profile.selectors.link) == "https://www.linkedin.com"
