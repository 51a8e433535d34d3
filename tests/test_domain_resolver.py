#!/usr/bin/env python3
"""Test domain candidate generation and DNS racing."""

import asyncio

from ats_discovery.config import CrawlerConfig, PRIORITY_TLDS
from ats_discovery.domain_resolver import DomainResolver, generate_candidates

from fakes import FakeDnsResolver

CONFIG = CrawlerConfig(dns_timeout_ms=200)


def make_resolver(config=CONFIG, **records):
    dns_resolver = FakeDnsResolver(**records)
    return DomainResolver(config, resolver=dns_resolver), dns_resolver


def test_candidate_priority_web3():
    candidates = generate_candidates('web3-solutions')

    assert candidates == ['web3solutions', 'web3-solutions', 'webthree-solutions', 'webthreesolutions']
    print(f"✓ web3-solutions -> {candidates}")


def test_candidate_numeric_slug_digit_by_digit():
    candidates = generate_candidates('123')

    assert candidates == ['123', 'onetwothree']
    assert not any('onehundred' in c for c in candidates)


def test_candidate_digit_words_to_digits():
    assert generate_candidates('one-medical') == ['onemedical', 'one-medical', '1-medical', '1medical']
    assert generate_candidates('studio_nine') == ['studio_nine', 'studio_9']
    # 'someone' contains 'one' but not as a standalone word
    assert generate_candidates('someone') == ['someone']


def test_candidate_plain_slug():
    assert generate_candidates('acme') == ['acme']


def test_region_tlds_front_loaded():
    config = CrawlerConfig(region_tlds=('de', 'com'))
    assert config.tlds[:2] == ('de', 'com')
    assert config.tlds.count('com') == 1
    assert set(PRIORITY_TLDS) <= set(config.tlds)


def test_exact_match_first_base():
    resolver, dns_resolver = make_resolver(a_records={'acmecorp.io'})

    domain = asyncio.run(resolver.resolve('acme-corp'))

    assert domain == 'acmecorp.io'
    queried = {host for host, _ in dns_resolver.queries}
    assert not any(host.startswith('acme-corp.') for host in queried), \
        "Second base should not be tried once the first base's batch succeeds"


def test_exact_match_falls_through_bases():
    resolver, _ = make_resolver(a_records={'web3-solutions.com'})

    assert asyncio.run(resolver.resolve('web3-solutions')) == 'web3-solutions.com'


def test_general_lookup_fallback():
    resolver, dns_resolver = make_resolver(name_hosts={'acme.dev'})

    assert asyncio.run(resolver.resolve('acme')) == 'acme.dev'
    assert ('acme.dev', 'A') in dns_resolver.queries
    assert ('acme.dev', 'NAME') in dns_resolver.queries


def test_variant_phase():
    resolver, _ = make_resolver(a_records={'getacme.io'})

    assert asyncio.run(resolver.resolve('acme')) == 'getacme.io'


def test_variant_order():
    """www. comes before get, get before app suffix."""
    resolver, _ = make_resolver(a_records={'getacme.com', 'acmeapp.com'})
    assert asyncio.run(resolver.resolve('acme')) == 'getacme.com'

    resolver, _ = make_resolver(a_records={'acmeapp.co'})
    assert asyncio.run(resolver.resolve('acme')) == 'acmeapp.co'


def test_variant_phase_limited_to_two_bases():
    # Third base 'webthree-solutions' never gets variants
    resolver, dns_resolver = make_resolver(a_records={'getwebthree-solutions.com'})

    assert asyncio.run(resolver.resolve('web3-solutions')) is None
    assert not any(host.startswith('getwebthree') for host, _ in dns_resolver.queries)


def test_variant_uses_reduced_tlds():
    resolver, _ = make_resolver(a_records={'getacme.ai'})
    assert asyncio.run(resolver.resolve('acme')) is None


def test_timeout_is_a_miss():
    resolver, _ = make_resolver(slow_hosts={'acme.com'}, a_records={'acme.com'})

    assert asyncio.run(resolver.probe('acme.com')) is False


def test_first_settled_success_wins():
    resolver, _ = make_resolver(a_records={'acme.com', 'acme.io'}, delays={'acme.com': 0.1})

    assert asyncio.run(resolver.race(['acme.com', 'acme.io'])) == 'acme.io'


def test_unresolvable_returns_none():
    resolver, dns_resolver = make_resolver()

    assert asyncio.run(resolver.resolve('zzqx-nothing')) is None
    assert resolver.lookups > 0
    assert len({host for host, _ in dns_resolver.queries}) == resolver.lookups


if __name__ == "__main__":
    print("Running domain resolver tests...\n")
    test_candidate_priority_web3()
    test_candidate_numeric_slug_digit_by_digit()
    test_candidate_digit_words_to_digits()
    test_candidate_plain_slug()
    test_region_tlds_front_loaded()
    test_exact_match_first_base()
    test_exact_match_falls_through_bases()
    test_general_lookup_fallback()
    test_variant_phase()
    test_variant_order()
    test_variant_phase_limited_to_two_bases()
    test_variant_uses_reduced_tlds()
    test_timeout_is_a_miss()
    test_first_settled_success_wins()
    test_unresolvable_returns_none()
    print("\n✓ All tests passed!")
