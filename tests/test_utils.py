"""
Unit tests for domain extraction helpers.
"""

import pytest

from facade_scout.utils import extract_registered_domain, is_network_url


class TestRegisteredDomain:

    @pytest.mark.parametrize("value,expected", [
        ("https://widget.intercom.io/widget/1", "intercom.io"),
        ("i.ytimg.com", "ytimg.com"),
        ("https://www.example.co.uk/page", "example.co.uk"),
    ])
    def test_public_suffix_aware(self, value, expected):
        assert extract_registered_domain(value) == expected

    def test_ip_address_falls_back_to_host(self):
        assert extract_registered_domain("http://192.168.0.1:8080/x") == "192.168.0.1"


class TestNetworkUrl:

    @pytest.mark.parametrize("url", ["data:image/png;base64,AAAA", "blob:https://a.com/1"])
    def test_non_network_schemes(self, url):
        assert not is_network_url(url)

    def test_https_is_network(self):
        assert is_network_url("https://a.com/x.js")
