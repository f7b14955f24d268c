"""Tests for kubeconfig loopback rewriting."""

from k3s_deploy.kubeconfig.transform import rewrite_loopback

from fakes import KUBECONFIG


class TestRewriteLoopback:
    """Tests for rewrite_loopback."""

    def test_rewrites_server_address(self):
        """Should point the server at the node's address."""
        result = rewrite_loopback(KUBECONFIG, "203.0.113.5")
        assert b"server: https://203.0.113.5:6443" in result
        assert b"127.0.0.1" not in result

    def test_rewrites_every_occurrence(self):
        """Should replace all occurrences of both forms."""
        doc = b"a: localhost\nb: 127.0.0.1\nc: localhost:6443,127.0.0.1:6443\n"
        result = rewrite_loopback(doc, "203.0.113.5")

        assert result == (
            b"a: 203.0.113.5\nb: 203.0.113.5\n"
            b"c: 203.0.113.5:6443,203.0.113.5:6443\n"
        )

    def test_length_matches_substitution_count(self):
        """Byte length should change only by the substitutions made."""
        doc = b"localhost 127.0.0.1 localhost"
        address = "203.0.113.5"
        result = rewrite_loopback(doc, address)

        expected = len(doc) + 2 * (len(address) - len("localhost")) + (
            len(address) - len("127.0.0.1")
        )
        assert len(result) == expected

    def test_leaves_other_bytes_untouched(self):
        """Documents without loopback addresses are returned as-is."""
        doc = b"server: https://10.0.0.1:6443\nname: local\n127.0.0.2\n"
        assert rewrite_loopback(doc, "203.0.113.5") == doc

    def test_empty_document(self):
        """Should handle an empty document."""
        assert rewrite_loopback(b"", "203.0.113.5") == b""

    def test_ipv6_address(self):
        """Should insert the address verbatim."""
        assert rewrite_loopback(b"localhost", "2001:db8::1") == b"2001:db8::1"
