from datetime import timedelta

from cueclub.models import Registration
from cueclub.models.enums import RegistrationStatus
from cueclub.services import registration_service

from conftest import NOW


class TestRegistrationLedger:

    def test_paid_registrations_earliest_first(self, db, make_tournament, make_registration):
        tournament = make_tournament()
        late = make_registration(tournament, registration_date=NOW - timedelta(days=1))
        early = make_registration(tournament, registration_date=NOW - timedelta(days=3))
        make_registration(tournament, paid=False, registration_date=NOW - timedelta(days=4))

        paid = registration_service.list_paid_registrations(db, tournament.id)

        assert [r.id for r in paid] == [early.id, late.id]
        assert registration_service.count_paid(db, tournament.id) == 2

    def test_prune_keeps_only_listed(self, db, make_tournament, fill_registrations):
        tournament = make_tournament()
        other = make_tournament(name="Other")
        registrations = fill_registrations(tournament, 5)
        untouched = fill_registrations(other, 2)

        removed = registration_service.prune_registrations(db, tournament.id, [r.id for r in registrations[:3]])
        db.commit()

        assert removed == 2
        assert db.query(Registration).filter(Registration.tournament_id == tournament.id).count() == 3
        assert db.query(Registration).filter(Registration.tournament_id == other.id).count() == len(untouched)

    def test_confirm_registrations(self, db, make_tournament, fill_registrations):
        tournament = make_tournament()
        registrations = fill_registrations(tournament, 3)

        assert registration_service.confirm_registrations(db, [r.id for r in registrations[:2]]) == 2
        assert registration_service.confirm_registrations(db, []) == 0
        db.commit()

        statuses = {r.id: r.registration_status for r in db.query(Registration).all()}
        assert statuses[registrations[0].id] == RegistrationStatus.CONFIRMED.value
        assert statuses[registrations[2].id] == RegistrationStatus.PENDING.value

    def test_confirmed_roster_carries_ratings(self, db, make_tournament, fill_registrations):
        tournament = make_tournament()
        fill_registrations(tournament, 3, confirmed=True, ratings=[1400, 1700, 1100])
        fill_registrations(tournament, 2, confirmed=False)

        roster = registration_service.list_confirmed_roster(db, tournament.id)

        assert [e.elo_rating for e in roster] == [1400, 1700, 1100]

    def test_priority_puts_paid_and_higher_rated_first(self, db, make_tournament, make_registration):
        tournament = make_tournament()
        unpaid_star = make_registration(tournament, paid=False, elo_rating=2400)
        paid_low = make_registration(tournament, elo_rating=1100)
        paid_high = make_registration(tournament, elo_rating=1900)

        ordered = registration_service.registration_priority(db, tournament.id)

        assert [r.id for r in ordered] == [paid_high.id, paid_low.id, unpaid_star.id]
        assert [r.priority_order for r in ordered] == [1, 2, 3]

    def test_ranking_does_not_write(self, db, make_tournament, make_registration):
        tournament = make_tournament()
        unpaid = make_registration(tournament, paid=False, elo_rating=2400)
        paid = make_registration(tournament, elo_rating=1100)

        ranked = registration_service.rank_registrations(db, tournament.id)

        assert [(r.id, position) for r, position in ranked] == [(paid.id, 1), (unpaid.id, 2)]
        assert not db.dirty
        db.expire_all()
        assert {r.priority_order for r in registration_service.list_paid_registrations(db, tournament.id)} == {None}
