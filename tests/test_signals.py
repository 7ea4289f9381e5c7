"""Tests for the synchronous risk signals."""

import pytest

from secureauth.analyzer.models import FormField, FormLabel, FormSnapshot, PageContext, SignalName
from secureauth.analyzer.signal_content import ContentPattern, ContentSignal
from secureauth.analyzer.signal_domain import DomainSignal, contains_homographs
from secureauth.analyzer.signal_form import FormSignal
from secureauth.analyzer.signal_reputation import ReputationSignal
from secureauth.analyzer.signal_transport import TransportSignal
from secureauth.analyzer.signals import SignalContext


@pytest.fixture
def domain_signal():
    return DomainSignal()


class TestDomainSignal:
    """Trust list, keyword, homograph, TLD and scheme checks."""

    def test_trusted_domain_short_circuits(self, domain_signal):
        result = domain_signal.score_host("github.com", "https")
        assert result.score == 90
        assert result.metadata["trusted"] is True
        assert result.findings == ()

    def test_trusted_subdomain_ignores_keywords_and_scheme(self, domain_signal):
        result = domain_signal.score_host("secure-login.accounts.google.com", "http")
        assert result.score == 90
        assert result.metadata["trusted_entry"] == "google.com"

    def test_lookalike_suffix_is_not_trusted(self, domain_signal):
        result = domain_signal.score_host("evilgithub.com", "https")
        assert result.metadata["trusted"] is False
        assert result.score == 50

    def test_deductions_stack_and_clamp(self, domain_signal):
        result = domain_signal.score_host("accounts-secure-login.tk", "http")
        assert result.raw_score == 50 - 20 - 15 - 25 - 40
        assert result.score == 0
        assert result.findings == (
            'Contains "login" in domain',
            'Contains "secure" in domain',
            "Suspicious TLD: tk",
            "Not using HTTPS",
        )

    def test_keyword_is_substring_check(self, domain_signal):
        result = domain_signal.score_host("mylogins.example", "https")
        assert 'Contains "login" in domain' in result.findings

    def test_secure_keyword_only(self, domain_signal):
        result = domain_signal.score_host("my-bank-secure.com", "https")
        assert result.score == 35
        assert result.metadata["tld"] == "com"

    def test_homograph_unicode(self, domain_signal):
        result = domain_signal.score_host("аpple.com", "https")
        assert "Possible homograph attack detected" in result.findings
        assert result.score == 20

    def test_homograph_punycode(self):
        assert contains_homographs("xn--80ak6aa92e.com")
        assert not contains_homographs("example.com")

    def test_custom_trusted_list(self):
        signal = DomainSignal(trusted_domains=["intranet.corp"], suspicious_tlds=["zip"])
        assert signal.score_host("sso.intranet.corp", "https").score == 90
        assert "Suspicious TLD: zip" in signal.score_host("files.zip", "https").findings

    def test_evaluate_reads_page(self, domain_signal):
        page = PageContext(url="http://example.xyz/login")
        result = domain_signal.evaluate(SignalContext(page=page, form=FormSnapshot()))
        assert result.name == SignalName.DOMAIN
        assert result.raw_score == 50 - 25 - 40
        assert result.score == 0


class TestTransportSignal:
    def test_https(self):
        assert TransportSignal().score_scheme("https").score == 70

    def test_http(self):
        result = TransportSignal().score_scheme("http")
        assert result.score == 10
        assert result.findings == ("Not using HTTPS - highly suspicious for a login form",)


class TestFormSignal:
    """Structural legitimacy features of the submitted form."""

    def _context(self, form, url="https://example.com/login", frames=0):
        return SignalContext(page=PageContext(url=url, frame_count=frames), form=form)

    def test_bare_form_is_neutral(self):
        result = FormSignal().evaluate(self._context(FormSnapshot()))
        assert result.score == 50
        assert result.findings == ()

    def test_all_positive_features(self):
        form = FormSnapshot(
            fields=[FormField(type="checkbox", id="remember")],
            labels=[
                FormLabel(text="Email", for_id="email"),
                FormLabel(text="Password", for_id="password"),
                FormLabel(text="Remember me", for_id="remember"),
            ],
            links=["Forgot password?", "Sign up"],
        )
        result = FormSignal().evaluate(self._context(form))
        assert result.score == 50 + 10 + 5 + 10 + 5
        assert result.metadata["has_remember_me"] is True
        assert result.metadata["has_register_link"] is True
        assert result.findings == ()

    def test_remember_me_needs_matching_label(self):
        form = FormSnapshot(
            fields=[FormField(type="checkbox", id="keep")],
            labels=[FormLabel(text="Remember me", for_id="other")],
        )
        result = FormSignal().evaluate(self._context(form))
        assert result.metadata["has_remember_me"] is False

    def test_each_feature_applies_once(self):
        form = FormSnapshot(links=["Forgot password?", "Reset password", "Register", "Create account"])
        assert FormSignal().evaluate(self._context(form)).score == 65

    def test_frames_on_untrusted_page(self):
        result = FormSignal().evaluate(self._context(FormSnapshot(), frames=2))
        assert result.score == 30
        assert result.findings == ("Suspicious iframes detected",)

    def test_frames_on_trusted_page(self):
        result = FormSignal().evaluate(
            self._context(FormSnapshot(), url="https://login.microsoft.com/", frames=1)
        )
        assert result.score == 50
        assert result.metadata["suspicious_iframes"] is False


class TestContentSignal:
    def test_clean_text(self):
        assert ContentSignal().score_text("Welcome back").score == 50

    def test_all_patterns_stack(self):
        text = "VERIFY your ACCOUNT now. It will be suspended after unusual activity."
        result = ContentSignal().score_text(text)
        assert result.score == 50 - 10 - 15 - 15
        assert result.findings == (
            "Account verification language",
            "Urgency language detected",
            "Security scare tactics",
        )

    def test_verify_alone_does_not_match(self):
        assert ContentSignal().score_text("verify your email").score == 50

    def test_either_urgency_word(self):
        assert ContentSignal().score_text("your card is locked").score == 35

    def test_custom_patterns(self):
        signal = ContentSignal([ContentPattern(points=-30, reason="Gift card", any_of=("gift card",))])
        result = signal.score_text("Claim your GIFT CARD")
        assert result.score == 20
        assert result.findings == ("Gift card",)


def test_reputation_is_neutral():
    result = ReputationSignal().evaluate(
        SignalContext(page=PageContext(url="https://example.com"), form=FormSnapshot())
    )
    assert result.score == 50
    assert result.findings == ()
    assert result.metadata["checked"] is False
