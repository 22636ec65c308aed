"""
DLOG proof tests
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError

import pytest

from zkdlog.curve import Scalar, Point, G, ORDER
from zkdlog.errors import InvalidInputError, RandomnessFailure
from zkdlog.proofs import DLogProof, PROOF_BYTES, prove, verify, verify_bytes
from zkdlog.rng import SecureRandom
from zkdlog.statement import SessionContext, Statement, Witness


def _keypair(rng):
    x = rng.random_scalar()
    return x, x * G


class TestCompleteness:
    """Honest proofs verify."""

    def test_valid_proof(self, rng):
        x, y = _keypair(rng)
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert verify(proof, "test_sid", 12345, y, G)

    @pytest.mark.parametrize("sid,pid", [
        ("sid", 0),
        ("a", 2 ** 64 - 1),
        ("ünïcødé-session", 7),
        ("x" * 1000, 42),
    ])
    def test_any_context(self, rng, sid, pid):
        x, y = _keypair(rng)
        assert verify(prove(sid, pid, x, y, G), sid, pid, y, G)

    def test_default_rng(self):
        x = Scalar(5)
        y = x * G
        assert DLogProof.prove("sid", 1, x, y).verify("sid", 1, y)

    def test_non_generator_base(self, rng):
        base = Scalar(987654321) * G
        x = rng.random_scalar()
        y = x * base
        proof = prove("sid", 1, x, y, base, rng=rng)
        assert verify(proof, "sid", 1, y, base)
        assert not verify(proof, "sid", 1, y, G)

    def test_zero_secret(self, rng):
        x = Scalar.zero()
        y = x * G
        assert y.is_inf()
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert verify(proof, "test_sid", 12345, y, G)
        assert verify_bytes(proof.to_bytes(), "test_sid", 12345, y, G)

    def test_max_secret(self, rng):
        x = Scalar(ORDER - 1)
        y = x * G
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert verify(proof, "test_sid", 12345, y, G)

    def test_max_secret_from_reduced_bytes(self, rng):
        x = Scalar.from_bytes_reduce(b"\xff" * 32)
        y = x * G
        assert verify(prove("sid", 1, x, y, G, rng=rng), "sid", 1, y, G)

    def test_statement_api(self, context, statement, witness, rng):
        assert statement.holds_for(witness)
        proof = DLogProof.prove_statement(context, statement, witness, rng)
        assert proof.verify_statement(context, statement)


class TestSoundness:
    """Proofs not derived from a matching witness fail."""

    def test_wrong_public_point(self, rng):
        x = rng.random_scalar()
        y = rng.random_scalar() * G
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert not verify(proof, "test_sid", 12345, y, G)

    def test_proof_for_other_statement(self, rng):
        x, y = _keypair(rng)
        _, other_y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert not verify(proof, "sid", 1, other_y, G)

    def test_random_forgeries_fail(self, rng):
        _, y = _keypair(rng)
        for _ in range(64):
            forged = DLogProof(t=rng.random_scalar() * G, s=rng.random_scalar())
            assert not verify(forged, "sid", 1, y, G)

    def test_tampered_response(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        bumped = DLogProof(t=proof.t, s=proof.s + Scalar.one())
        assert not verify(bumped, "sid", 1, y, G)

    def test_tampered_commitment(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        moved = DLogProof(t=proof.t + G, s=proof.s)
        assert not verify(moved, "sid", 1, y, G)

    def test_simulated_transcript_with_fixed_challenge_fails(self, rng):
        # T = S·G - c·Y with c chosen before T: the hash will not return c
        _, y = _keypair(rng)
        s, c = rng.random_scalar(), rng.random_scalar()
        t = (s * G) + (-(c * y))
        assert not verify(DLogProof(t=t, s=s), "sid", 1, y, G)


class TestDomainBinding:
    """Proofs are bound to their session context."""

    def test_wrong_session_id(self, rng):
        x, y = _keypair(rng)
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert not verify(proof, "wrong_sid", 12345, y, G)

    def test_wrong_party_id(self, rng):
        x, y = _keypair(rng)
        proof = prove("test_sid", 12345, x, y, G, rng=rng)
        assert not verify(proof, "test_sid", 54321, y, G)

    def test_prefix_session_id(self, rng):
        x, y = _keypair(rng)
        proof = prove("session", 1, x, y, G, rng=rng)
        assert not verify(proof, "sessio", 1, y, G)
        assert not verify(proof, "session ", 1, y, G)


class TestNonceFreshness:
    """Each proof uses a fresh nonce."""

    def test_two_proofs_differ_and_verify(self, rng):
        x, y = _keypair(rng)
        p1 = prove("sid", 1, x, y, G, rng=rng)
        p2 = prove("sid", 1, x, y, G, rng=rng)
        assert p1.t != p2.t
        assert p1.s != p2.s
        assert verify(p1, "sid", 1, y, G)
        assert verify(p2, "sid", 1, y, G)

    def test_concurrent_proving(self, rng):
        x, y = _keypair(rng)
        shared = SecureRandom()

        def run(i):
            return prove("sid", i % 3, x, y, G, rng=shared)

        with ThreadPoolExecutor(max_workers=8) as pool:
            proofs = list(pool.map(run, range(32)))

        assert len({p.t.to_bytes() for p in proofs}) == len(proofs)
        for i, p in enumerate(proofs):
            assert verify(p, "sid", i % 3, y, G)

    def test_nonce_reuse_leaks_secret(self, rng):
        # documents why a fixed nonce source is forbidden
        x, y = _keypair(rng)
        fixed = (123456789).to_bytes(32, "big")
        stuck = SecureRandom(lambda n: fixed)
        p1 = prove("sid", 1, x, y, G, rng=stuck)
        p2 = prove("sid", 2, x, y, G, rng=stuck)
        assert p1.t == p2.t

        from zkdlog.hash import challenge
        c1 = challenge("sid", 1, [G, y, p1.t])
        c2 = challenge("sid", 2, [G, y, p2.t])
        dc = (c1 - c2).value
        recovered = Scalar((p1.s - p2.s).value * pow(dc, ORDER - 2, ORDER))
        assert recovered == x


class TestProveErrors:
    """Prover-side failures."""

    def test_empty_session_id(self, rng):
        x, y = _keypair(rng)
        with pytest.raises(InvalidInputError):
            prove("", 1, x, y, G, rng=rng)

    def test_unencodable_session_id(self, rng):
        # lone surrogate has no UTF-8 encoding
        x, y = _keypair(rng)
        with pytest.raises(InvalidInputError):
            prove("\ud800", 1, x, y, G, rng=rng)

    def test_party_id_out_of_range(self, rng):
        x, y = _keypair(rng)
        with pytest.raises(InvalidInputError):
            prove("sid", 2 ** 64, x, y, G, rng=rng)
        with pytest.raises(InvalidInputError):
            prove("sid", -1, x, y, G, rng=rng)

    def test_randomness_failure_aborts(self):
        def broken(n):
            raise OSError("no entropy")

        x = Scalar(3)
        with pytest.raises(RandomnessFailure):
            prove("sid", 1, x, x * G, G, rng=SecureRandom(broken))

    def test_proof_is_immutable(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        with pytest.raises(FrozenInstanceError):
            proof.s = Scalar.one()


class TestVerifyTotality:
    """``verify`` answers False instead of raising."""

    def test_identity_commitment(self, rng):
        _, y = _keypair(rng)
        forged = DLogProof(t=Point.identity(), s=Scalar.zero())
        assert not verify(forged, "sid", 1, y, G)

    def test_identity_commitment_zero_statement(self):
        # S = 0, T = O, Y = O satisfies the equation; must still be refused
        forged = DLogProof(t=Point.identity(), s=Scalar.zero())
        assert not verify(forged, "sid", 1, Point.identity(), G)

    def test_empty_session_id(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert not verify(proof, "", 1, y, G)

    @pytest.mark.parametrize("pid", [-1, 2 ** 64, "1", None])
    def test_bad_party_id(self, rng, pid):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert verify(proof, "sid", pid, y, G) is False

    def test_bad_component_types(self, rng):
        _, y = _keypair(rng)
        assert not verify(DLogProof(t=None, s=Scalar.one()), "sid", 1, y, G)
        assert not verify(DLogProof(t=G, s=5), "sid", 1, y, G)

    def test_bad_statement_types(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert not verify(proof, "sid", 1, y.to_bytes(), G)
        assert not verify(proof, "sid", 1, y, None)

    def test_non_proof_object(self, rng):
        _, y = _keypair(rng)
        assert not verify(b"\x00" * PROOF_BYTES, "sid", 1, y, G)

    def test_uninitialised_points(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        hollow = Point.__new__(Point)
        assert verify(DLogProof(t=hollow, s=proof.s), "sid", 1, y, G) is False
        assert verify(proof, "sid", 1, hollow, G) is False
        assert verify(proof, "sid", 1, y, hollow) is False

    def test_unencodable_session_id(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert verify(proof, "\ud800", 1, y, G) is False


class TestWireFormat:
    """Serialisation of proofs exchanged between parties."""

    def test_layout(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        data = proof.to_bytes()
        assert len(data) == PROOF_BYTES == 65
        assert data[:33] == proof.t.to_bytes()
        assert int.from_bytes(data[33:], "big") == proof.s.value

    def test_roundtrip(self, rng):
        x, y = _keypair(rng)
        proof = prove("sid", 1, x, y, G, rng=rng)
        assert DLogProof.from_bytes(proof.to_bytes()) == proof

    @pytest.mark.parametrize("length", [0, 33, 64, 66, 130])
    def test_wrong_length(self, length):
        with pytest.raises(InvalidInputError):
            DLogProof.from_bytes(b"\x02" * length)

    def test_response_out_of_range(self):
        data = G.to_bytes() + ORDER.to_bytes(32, "big")
        with pytest.raises(InvalidInputError):
            DLogProof.from_bytes(data)

    def test_invalid_commitment(self):
        data = b"\x02" + (5).to_bytes(32, "big") + Scalar.one().to_bytes()
        with pytest.raises(InvalidInputError):
            DLogProof.from_bytes(data)

    def test_not_bytes(self):
        with pytest.raises(InvalidInputError):
            DLogProof.from_bytes("00" * 65)

    def test_verify_bytes_never_raises(self, rng):
        _, y = _keypair(rng)
        assert not verify_bytes(b"", "sid", 1, y, G)
        assert not verify_bytes(b"\xff" * 65, "sid", 1, y, G)
        assert not verify_bytes(b"\x00" * 65, "sid", 1, y, G)


class TestReferenceScenario:
    """sid = "sid", pid = 1, fixed secret, G = generator."""

    def test_prove_then_verify(self, fixed_witness, rng):
        ctx = SessionContext("sid", 1)
        stmt = Statement.from_witness(fixed_witness, G)
        proof = DLogProof.prove_statement(ctx, stmt, fixed_witness, rng)
        assert verify_bytes(proof.to_bytes(), "sid", 1, stmt.public, G)

    def test_any_byte_mutation_of_response_fails(self, fixed_witness, rng):
        y = fixed_witness.secret * G
        proof = prove("sid", 1, fixed_witness.secret, y, G, rng=rng)
        data = proof.to_bytes()
        assert verify_bytes(data, "sid", 1, y, G)

        for i in range(33, PROOF_BYTES):
            for flip in (0x01, 0x80):
                mutated = bytearray(data)
                mutated[i] ^= flip
                assert not verify_bytes(bytes(mutated), "sid", 1, y, G), i

    def test_commitment_byte_mutation_fails(self, fixed_witness, rng):
        y = fixed_witness.secret * G
        data = bytearray(prove("sid", 1, fixed_witness.secret, y, G, rng=rng).to_bytes())
        data[32] ^= 0x01
        assert not verify_bytes(bytes(data), "sid", 1, y, G)


class TestDataModel:
    """SessionContext / Witness / Statement."""

    def test_context_validation(self):
        with pytest.raises(InvalidInputError):
            SessionContext("", 1)
        with pytest.raises(InvalidInputError):
            SessionContext("sid", -1)
        with pytest.raises(InvalidInputError):
            SessionContext("sid", True)
        with pytest.raises(InvalidInputError):
            SessionContext("\ud800", 1)

    def test_witness_repr_redacted(self, fixed_witness):
        assert "redacted" in repr(fixed_witness)
        assert hex(fixed_witness.secret.value)[2:10] not in repr(fixed_witness)

    def test_statement_does_not_hold_for_other_witness(self, statement, rng):
        assert not statement.holds_for(Witness.random(rng))
