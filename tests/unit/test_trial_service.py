"""Tests for TrialService proceedings, sentences and appeals."""

import pytest

from myrefell.domain.enums import (
    BountyStatus,
    PunishmentStatus,
    PunishmentType,
    TrialStatus,
)
from myrefell.factory import create_crime_service, create_tax_service, create_trial_service
from myrefell.models import Bounty, JailInmate, Outlaw, Punishment
from myrefell.services.errors import ForbiddenError


@pytest.fixture
def crimes(session, world):
    return create_crime_service(session)


@pytest.fixture
def trials(session, world):
    return create_trial_service(session)


def open_trial(crimes, world, crime_type="theft", accused=None):
    """Alice accuses (Bob by default) at Millbrook and the elder accepts."""
    accused = accused or world.bob
    accusation = crimes.file_accusation(world.alice, accused.id, crime_type, "I saw it happen.")
    result = crimes.review_accusation(world.elder, accusation.id, "accept")
    return result["trial_id"]


def punishments_of(session, trial_id):
    return session.query(Punishment).filter(Punishment.trial_id == trial_id).all()


class TestScheduling:
    def test_village_court_sits_at_the_crime_location(self, world, crimes, trials):
        trial = trials.get_trial(open_trial(crimes, world))

        assert trial.court_level == "village"
        assert (trial.location_type, trial.location_id) == ("village", world.village.id)
        assert trial.judge_id == world.elder.id
        assert trial.defendant_id == world.bob.id
        assert trial.status == TrialStatus.SCHEDULED
        assert trial.crime.status == "trial_pending"

    def test_barony_court_sits_at_the_barony(self, world, crimes, trials):
        trial = trials.get_trial(open_trial(crimes, world, "assault"))

        assert (trial.location_type, trial.location_id) == ("barony", world.barony.id)
        assert trial.judge_id == world.baron.id

    def test_kingdom_court_sits_at_the_kingdom(self, world, crimes, trials):
        trial = trials.get_trial(open_trial(crimes, world, "murder"))

        assert (trial.location_type, trial.location_id) == ("kingdom", world.kingdom.id)
        assert trial.judge_id == world.king.id

    def test_church_court_uses_any_high_priest(self, world, crimes, trials, add_player, add_role):
        priest = add_player("father_brann", ("kingdom", world.kingdom.id))
        add_role(priest, "high_priest", "kingdom", world.kingdom.id)

        trial = trials.get_trial(open_trial(crimes, world, "heresy"))

        assert trial.court_level == "church"
        assert trial.location_type == "village"
        assert trial.judge_id == priest.id

    def test_court_without_judge_leaves_judge_empty(self, world, crimes, trials):
        trial = trials.get_trial(open_trial(crimes, world, "heresy"))
        assert trial.judge_id is None

    def test_judge_sees_pending_trials(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        assert [t.id for t in trials.pending_trials_for_judge(world.elder)] == [trial_id]
        assert trials.pending_trials_for_judge(world.baron) == []


class TestAuthority:
    def test_local_judges(self, world, trials):
        assert trials.has_judicial_authority(world.elder, "village", world.village.id)
        assert trials.has_judicial_authority(world.baron, "barony", world.barony.id)
        assert not trials.has_judicial_authority(world.elder, "village", world.far_village.id)
        assert not trials.has_judicial_authority(world.alice, "village", world.village.id)

    def test_admin_has_authority_everywhere(self, world, trials):
        assert trials.has_judicial_authority(world.admin, "kingdom", world.kingdom.id)


class TestDefense:
    def test_defense_moves_trial_to_awaiting_verdict(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)

        trial = trials.submit_defense(world.bob, trial_id, "  I was at the mill.  ")

        assert trial.status == TrialStatus.AWAITING_VERDICT
        assert trial.defense_argument == "I was at the mill."
        assert trial.started_at is not None

    def test_only_defendant_may_defend(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        with pytest.raises(ForbiddenError):
            trials.submit_defense(world.alice, trial_id, "He did it.")

    def test_empty_defense_is_rejected(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        with pytest.raises(ValueError, match="required"):
            trials.submit_defense(world.bob, trial_id, "   ")

    def test_defense_only_once(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.submit_defense(world.bob, trial_id, "Innocent.")
        with pytest.raises(ValueError, match="not accepting"):
            trials.submit_defense(world.bob, trial_id, "Still innocent.")


class TestVerdicts:
    def test_fine_is_paid_into_the_court_treasury(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world)

        trial = trials.render_verdict(
            world.elder, trial_id, "guilty", "Caught red-handed.", [{"type": "fine"}]
        )

        assert trial.status == TrialStatus.CONCLUDED
        assert trial.crime.status == "resolved"
        assert world.bob.gold == 400
        [fine] = punishments_of(session, trial_id)
        assert fine.fine_amount == 100
        assert fine.status == PunishmentStatus.COMPLETED
        treasury = create_tax_service(session).get_treasury("village", world.village.id)
        assert treasury.balance == 100

    def test_unpaid_fine_becomes_jail_time(self, session, world, crimes, trials):
        world.bob.gold = 30
        session.commit()
        trial_id = open_trial(crimes, world)

        trials.render_verdict(
            world.elder,
            trial_id,
            "guilty",
            "They cannot pay.",
            [{"type": "fine", "fine_amount": 250}],
        )

        [punishment] = punishments_of(session, trial_id)
        assert punishment.type == PunishmentType.JAIL
        assert punishment.jail_days == 3
        assert punishment.status == PunishmentStatus.ACTIVE
        assert world.bob.gold == 0
        assert crimes.is_jailed(world.bob)

    def test_jail_uses_base_days_when_unspecified(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world)

        trials.render_verdict(world.elder, trial_id, "guilty", "Jailed.", [{"type": "jail"}])

        inmate = session.query(JailInmate).one()
        assert (inmate.release_at - inmate.jailed_at).days == 1
        assert inmate.jail_location_type == "village"

    def test_not_guilty_ignores_punishments(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world)

        trials.render_verdict(
            world.elder, trial_id, "not_guilty", "No evidence.", [{"type": "fine"}]
        )

        assert punishments_of(session, trial_id) == []
        assert world.bob.gold == 500

    def test_exactly_one_verdict(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.render_verdict(world.elder, trial_id, "not_guilty", "No evidence.")

        with pytest.raises(ValueError, match="already concluded"):
            trials.render_verdict(world.elder, trial_id, "guilty", "Changed my mind.")

    def test_only_the_judge_renders_verdicts(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        with pytest.raises(ForbiddenError):
            trials.render_verdict(world.baron, trial_id, "guilty", "Overreach.")

    def test_admin_may_render_verdicts(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trial = trials.render_verdict(world.admin, trial_id, "dismissed", "Out of time.")
        assert trial.verdict == "dismissed"

    def test_unknown_verdict(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        with pytest.raises(ValueError, match="Unknown verdict"):
            trials.render_verdict(world.elder, trial_id, "maybe", "Unsure.")

    def test_outlawry_requires_a_grave_crime(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        with pytest.raises(ValueError, match="cannot be punished with outlawry"):
            trials.render_verdict(
                world.elder, trial_id, "guilty", "Too harsh.", [{"type": "outlawry"}]
            )
        assert trials.get_trial(trial_id).status == TrialStatus.SCHEDULED

    def test_outlawry_posts_a_bounty(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world, "murder")

        trials.render_verdict(
            world.king, trial_id, "guilty", "Guilty of murder.", [{"type": "outlawry"}]
        )

        outlaw = session.query(Outlaw).one()
        assert (outlaw.declared_by_type, outlaw.declared_by_id) == ("kingdom", world.kingdom.id)
        bounty = session.query(Bounty).one()
        assert bounty.target_id == world.bob.id
        assert bounty.reward_amount == 1000
        assert bounty.poster_type == "kingdom"
        assert bounty.status == BountyStatus.ACTIVE
        assert crimes.is_outlaw(world.bob)

    def test_execution(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world, "murder")

        trials.render_verdict(
            world.king, trial_id, "guilty", "Hang him.", [{"type": "execution"}]
        )

        assert world.bob.is_dead is True
        assert world.bob.hp == 0
        assert punishments_of(session, trial_id)[0].status == PunishmentStatus.COMPLETED

    def test_exile_defaults_to_the_court_seat(self, session, world, crimes, trials):
        trial_id = open_trial(crimes, world)

        trials.render_verdict(world.elder, trial_id, "guilty", "Begone.", [{"type": "exile"}])

        assert crimes.is_exiled_from(world.bob, "village", world.village.id)
        assert not crimes.is_exiled_from(world.bob, "town", world.town.id)


class TestAppeals:
    def test_village_verdict_goes_to_the_barony(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.render_verdict(world.elder, trial_id, "guilty", "Guilty.", [{"type": "fine"}])

        appeal = trials.appeal_verdict(world.bob, trial_id)

        assert trials.get_trial(trial_id).status == TrialStatus.APPEALED
        assert appeal.appeal_of_id == trial_id
        assert appeal.court_level == "barony"
        assert appeal.judge_id == world.baron.id
        assert appeal.status == TrialStatus.SCHEDULED

    def test_appeal_chain_ends_at_the_kingdom(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.render_verdict(world.elder, trial_id, "guilty", "Guilty.")
        barony = trials.appeal_verdict(world.bob, trial_id)
        trials.render_verdict(world.baron, barony.id, "guilty", "Upheld.")
        kingdom = trials.appeal_verdict(world.bob, barony.id)
        trials.render_verdict(world.king, kingdom.id, "guilty", "Final.")

        assert kingdom.court_level == "kingdom"
        with pytest.raises(ValueError, match="cannot be appealed"):
            trials.appeal_verdict(world.bob, kingdom.id)

    def test_acquittals_cannot_be_appealed(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.render_verdict(world.elder, trial_id, "not_guilty", "Acquitted.")

        assert trials.can_appeal(trials.get_trial(trial_id)) is False
        with pytest.raises(ValueError):
            trials.appeal_verdict(world.bob, trial_id)

    def test_only_defendant_may_appeal(self, world, crimes, trials):
        trial_id = open_trial(crimes, world)
        trials.render_verdict(world.elder, trial_id, "guilty", "Guilty.")

        with pytest.raises(ForbiddenError):
            trials.appeal_verdict(world.alice, trial_id)
