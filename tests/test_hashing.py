"""
Tests for content hashing and the known-hash set.
"""

import hashlib
import threading

from ticket_sync.sync.hashing import ContentHasher, KnownHashes


class TestContentHasher:
    """Incremental digests must equal a one-shot digest of the same bytes."""

    def test_chunked_digest_matches_whole(self):
        data = b"attachment body " * 100
        hasher = ContentHasher()
        for i in range(0, len(data), 7):
            hasher.update(data[i:i + 7])

        assert hasher.hexdigest() == hashlib.sha256(data).hexdigest()
        assert hasher.bytes_seen == len(data)

    def test_empty_stream(self):
        hasher = ContentHasher()
        assert hasher.hexdigest() == hashlib.sha256(b"").hexdigest()
        assert hasher.bytes_seen == 0

    def test_chunk_boundaries_do_not_matter(self):
        a, b = ContentHasher(), ContentHasher()
        a.update(b"ab")
        a.update(b"c")
        b.update(b"abc")
        assert a.hexdigest() == b.hexdigest()


class TestKnownHashes:
    """claim() is the only way content gets accepted."""

    def test_seeded_hashes_are_known(self):
        known = KnownHashes(["aaa", "bbb", ""])
        assert "aaa" in known
        assert "" not in known
        assert len(known) == 2

    def test_claim_once(self):
        known = KnownHashes()
        assert known.claim("abc") is True
        assert known.claim("abc") is False
        assert "abc" in known

    def test_discard_releases_claim(self):
        known = KnownHashes(["abc"])
        known.discard("abc")
        assert known.claim("abc") is True

    def test_concurrent_claims_accept_exactly_one(self):
        """Many threads racing on the same digest: only one wins."""
        known = KnownHashes()
        wins = []
        barrier = threading.Barrier(16)

        def racer():
            barrier.wait()
            if known.claim("same-content"):
                wins.append(1)

        threads = [threading.Thread(target=racer) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1
