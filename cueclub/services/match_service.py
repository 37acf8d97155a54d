"""
Match results, winner propagation, walkovers, restore and bracket reset.

The advancement engine decides what changes on match snapshots; this module
writes those changes with compare-and-swap UPDATEs so that concurrent reports
for the same match resolve to exactly one winner.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cueclub.core.clock import utcnow
from cueclub.core.events import table_events
from cueclub.core.exceptions import CueClubError, DependencyFailure, InvalidState, NotFound
from cueclub.core.transitions import ensure_match_transition, match_sources_for
from cueclub.engine import advancement
from cueclub.models import bracket as bracket_orm
from cueclub.models import match as match_orm
from cueclub.models.bracket_model import MatchModel, ReportOutcome
from cueclub.models.enums import OPEN_MATCH_STATUSES, MatchStatus, TournamentStatus
from cueclub.services import bracket_service, notification_service, tournament_service

logger = logging.getLogger(__name__)

Match = match_orm.Match
Bracket = bracket_orm.Bracket


def get_match(db: Session, match_id: str) -> Optional[match_orm.Match]:
    return db.query(Match).filter(Match.id == match_id).first()


def get_match_or_404(db: Session, match_id: str) -> match_orm.Match:
    match = get_match(db, match_id)
    if not match:
        raise NotFound(f"Match {match_id} not found", step="load_match")
    return match


def _set_match_status(db: Session, match_id: str, target: MatchStatus, values: dict, step: str) -> None:
    """CAS on the status column: only matches still in a status that may move to `target` are updated."""
    sources = [s.value for s in match_sources_for(target)]
    values = dict(values)
    values[Match.status] = target.value
    values[Match.updated_at] = utcnow()
    updated = db.query(Match).filter(
        Match.id == match_id,
        Match.status.in_(sources),
    ).update(values, synchronize_session=False)
    if updated != 1:
        raise InvalidState(f"Match {match_id} was changed by someone else", step=step)


def _fill_slot(db: Session, next_match: MatchModel, slot: int, winner_id: str) -> None:
    column = Match.player1_id if slot == 1 else Match.player2_id
    updated = db.query(Match).filter(
        Match.id == next_match.id,
        or_(column.is_(None), column == winner_id),
    ).update({column: winner_id, Match.updated_at: utcnow()}, synchronize_session=False)
    if updated != 1:
        raise InvalidState(
            f"Slot {slot} of match R{next_match.round_number}M{next_match.match_number} is already taken",
            step="propagate_winner",
        )


def _sync_current_round(db: Session, tournament_id: str, matches: List[MatchModel]) -> int:
    current = advancement.current_round(matches)
    db.query(Bracket).filter(Bracket.tournament_id == tournament_id).update(
        {Bracket.current_round: current}, synchronize_session=False
    )
    return current

def _clear_slot(db: Session, next_match: MatchModel, slot: int, winner_id: str) -> None:
    """CAS: only empties the slot while it still holds winner_id and the match is unsettled."""
    column = Match.player1_id if slot == 1 else Match.player2_id
    updated = db.query(Match).filter(
        Match.id == next_match.id,
        column == winner_id,
        Match.status.in_([s.value for s in OPEN_MATCH_STATUSES]),
    ).update({
        column: None,
        Match.status: MatchStatus.SCHEDULED.value,
        Match.score_player1: None,
        Match.score_player2: None,
        Match.started_at: None,
        Match.updated_at: utcnow(),
    }, synchronize_session=False)
    if updated != 1:
        raise InvalidState(
            f"Match R{next_match.round_number}M{next_match.match_number} was changed by someone else",
            step="retract_winner",
        )


def _ensure_ongoing(tournament, step: str) -> None:
    if tournament.status != TournamentStatus.ONGOING.value:
        raise InvalidState(
            f"Matches can only change while the tournament is ongoing (status '{tournament.status}')",
            step=step,
        )


def _match_ready_notices(tournament, next_match: MatchModel) -> list:
    player1_id, player2_id = next_match.player1_id, next_match.player2_id
    return [
        notification_service.match_ready_notice(
            player_id, opponent_id, tournament.id, tournament.name,
            next_match.round_number, next_match.match_number,
        )
        for player_id, opponent_id in ((player1_id, player2_id), (player2_id, player1_id))
    ]


def _settle_walkovers(db: Session, tournament, matches: List[MatchModel], settled: MatchModel, outcome: ReportOutcome):
    """
    Writes every match that can no longer be played once `settled` is terminal:
    a lone player wins on walkover and moves on, an empty match is cancelled.
    Returns (changed_ids, notices). Does not commit.
    """
    rounds = advancement.total_rounds(matches)
    index = advancement.index_matches(matches)
    changed_ids, notices = [], []
    for match in advancement.resolve_walkovers(matches, settled):
        changed_ids.append(match.id)
        if match.status == MatchStatus.CANCELLED.value:
            _set_match_status(db, match.id, MatchStatus.CANCELLED, {}, step="resolve_walkover")
            continue

        _set_match_status(db, match.id, MatchStatus.COMPLETED, {
            Match.winner_id: match.winner_id,
            Match.is_bye: True,
            Match.completed_at: utcnow(),
        }, step="resolve_walkover")
        logger.info(
            "Match R%dM%d of tournament %s won by %s on walkover",
            match.round_number, match.match_number, tournament.id, match.winner_id,
        )
        if advancement.is_final(match, rounds):
            tournament_service.transition_status(db, tournament, TournamentStatus.COMPLETED, step="complete_tournament")
            outcome.tournament_complete = True
            outcome.champion_id = match.winner_id
            notices.append(notification_service.champion_notice(match.winner_id, tournament.id, tournament.name))
        else:
            round_number, match_number, slot = advancement.next_position(match.round_number, match.match_number)
            next_match = index[(round_number, match_number)]
            _fill_slot(db, next_match, slot, match.winner_id)
            changed_ids.append(next_match.id)
            if len(next_match.players) == 2:
                notices.extend(_match_ready_notices(tournament, next_match))
    return changed_ids, notices


def _send_notices(db: Session, notices: list, match_id: str) -> int:
    try:
        return len(notification_service.create_notifications(db, notices))
    except DependencyFailure:
        logger.exception("Could not send notifications for match %s", match_id)
        return 0


def report_result(
    db: Session,
    match_id: str,
    score1: int,
    score2: int,
    winner_id: str,
) -> ReportOutcome:
    row = get_match_or_404(db, match_id)
    tournament = tournament_service.get_tournament_or_404(db, row.tournament_id)

    matches = bracket_service.load_match_models(db, tournament.id)
    index = advancement.index_matches(matches)
    match = index[(row.round_number, row.match_number)]

    advancement.validate_result(match, winner_id)
    ensure_match_transition(match.status, MatchStatus.COMPLETED, step="validate_result")
    _ensure_ongoing(tournament, step="validate_result")

    rounds = advancement.total_rounds(matches)
    outcome = ReportOutcome(match=match)
    notices = []
    changed_ids = [match.id]

    step = "complete_match"
    try:
        now = utcnow()
        _set_match_status(db, match.id, MatchStatus.COMPLETED, {
            Match.score_player1: score1,
            Match.score_player2: score2,
            Match.winner_id: winner_id,
            Match.completed_at: now,
        }, step=step)
        match.score_player1 = score1
        match.score_player2 = score2
        match.winner_id = winner_id
        match.status = MatchStatus.COMPLETED.value

        if advancement.is_final(match, rounds):
            step = "complete_tournament"
            tournament_service.transition_status(db, tournament, TournamentStatus.COMPLETED, step=step)
            outcome.tournament_complete = True
            outcome.champion_id = winner_id
            notices.append(notification_service.champion_notice(winner_id, tournament.id, tournament.name))
        else:
            step = "propagate_winner"
            next_match, slot, changed = advancement.propagate(matches, match)
            if changed:
                _fill_slot(db, next_match, slot, winner_id)
                changed_ids.append(next_match.id)
            outcome.advanced = True
            outcome.next_round = next_match.round_number
            outcome.next_match_number = next_match.match_number
            outcome.next_slot = slot
            if changed and len(next_match.players) == 2:
                notices.extend(_match_ready_notices(tournament, next_match))

            step = "resolve_walkover"
            walkover_ids, walkover_notices = _settle_walkovers(db, tournament, matches, match, outcome)
            changed_ids.extend(walkover_ids)
            notices.extend(walkover_notices)

        step = "update_bracket"
        outcome.round_complete = advancement.is_round_complete(matches, match.round_number)
        _sync_current_round(db, tournament.id, matches)

        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Recording result failed at {step}: {exc}", step=step) from exc
    except CueClubError:
        db.rollback()
        raise

    outcome.match = match
    logger.info(
        "Match R%dM%d of tournament %s won by %s (%d-%d)",
        match.round_number, match.match_number, tournament.id, winner_id, score1, score2,
    )
    table_events.publish("tournament_matches", changed_ids)
    if outcome.tournament_complete:
        table_events.publish("tournaments", [tournament.id])

    outcome.notifications_sent = _send_notices(db, notices, match.id)
    return outcome


def start_match(db: Session, match_id: str) -> match_orm.Match:
    row = get_match_or_404(db, match_id)
    ensure_match_transition(row.status, MatchStatus.IN_PROGRESS, step="start_match")
    if not row.player1_id or not row.player2_id:
        raise InvalidState("Both players must be known before the match can start", step="start_match")

    try:
        _set_match_status(db, row.id, MatchStatus.IN_PROGRESS, {Match.started_at: utcnow()}, step="start_match")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not start match: {exc}", step="start_match") from exc
    except InvalidState:
        db.rollback()
        raise

    db.refresh(row)
    table_events.publish("tournament_matches", [row.id])
    return row


def update_score(db: Session, match_id: str, score1: int, score2: int) -> match_orm.Match:
    """Records the running score of a match being played; it stays in progress."""
    row = get_match_or_404(db, match_id)
    if row.status != MatchStatus.IN_PROGRESS.value:
        raise InvalidState(
            f"Scores can only be updated while the match is in progress (status '{row.status}')",
            step="update_score",
        )

    try:
        updated = db.query(Match).filter(
            Match.id == row.id,
            Match.status == MatchStatus.IN_PROGRESS.value,
        ).update({
            Match.score_player1: score1,
            Match.score_player2: score2,
            Match.updated_at: utcnow(),
        }, synchronize_session=False)
        if updated != 1:
            raise InvalidState(f"Match {row.id} was changed by someone else", step="update_score")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not update score: {exc}", step="update_score") from exc
    except InvalidState:
        db.rollback()
        raise

    db.refresh(row)
    table_events.publish("tournament_matches", [row.id])
    return row


def cancel_match(db: Session, match_id: str) -> match_orm.Match:
    """
    Cancels a match. Its slot in the next round is treated as a BYE, so once
    the other feeder is settled the next match is walked over (or cancelled
    when both feeders were cancelled).
    """
    row = get_match_or_404(db, match_id)
    ensure_match_transition(row.status, MatchStatus.CANCELLED, step="cancel_match")
    tournament = tournament_service.get_tournament_or_404(db, row.tournament_id)
    _ensure_ongoing(tournament, step="cancel_match")

    matches = bracket_service.load_match_models(db, tournament.id)
    match = advancement.index_matches(matches)[(row.round_number, row.match_number)]
    outcome = ReportOutcome(match=match)
    changed_ids = [row.id]
    notices = []

    step = "cancel_match"
    try:
        _set_match_status(db, row.id, MatchStatus.CANCELLED, {}, step=step)
        match.status = MatchStatus.CANCELLED.value

        step = "resolve_walkover"
        walkover_ids, notices = _settle_walkovers(db, tournament, matches, match, outcome)
        changed_ids.extend(walkover_ids)

        step = "update_bracket"
        _sync_current_round(db, tournament.id, matches)

        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not cancel match at {step}: {exc}", step=step) from exc
    except CueClubError:
        db.rollback()
        raise

    db.refresh(row)
    logger.info("Match R%dM%d of tournament %s cancelled", row.round_number, row.match_number, row.tournament_id)
    table_events.publish("tournament_matches", changed_ids)
    if outcome.tournament_complete:
        table_events.publish("tournaments", [tournament.id])
    _send_notices(db, notices, row.id)
    return row


def restore_match(db: Session, match_id: str) -> match_orm.Match:
    """
    Puts a completed or cancelled match back to scheduled, clearing its winner
    and scores. A propagated winner is taken back out of the next round, which
    is only possible while that next match has not been settled. Restoring the
    final of a completed tournament reopens it.
    """
    row = get_match_or_404(db, match_id)
    ensure_match_transition(row.status, MatchStatus.SCHEDULED, step="restore_match")
    tournament = tournament_service.get_tournament_or_404(db, row.tournament_id)
    if tournament.status not in (TournamentStatus.ONGOING.value, TournamentStatus.COMPLETED.value):
        raise InvalidState(
            f"Cannot restore matches of a tournament in status '{tournament.status}'",
            step="restore_match",
        )

    matches = bracket_service.load_match_models(db, tournament.id)
    index = advancement.index_matches(matches)
    match = index[(row.round_number, row.match_number)]
    if match.is_bye and match.round_number == 1:
        raise InvalidState(
            f"Match R{match.round_number}M{match.match_number} was won on a BYE and cannot be restored",
            step="restore_match",
        )

    rounds = advancement.total_rounds(matches)
    changed_ids = [row.id]
    reopened = False

    step = "retract_winner"
    try:
        if not advancement.is_final(match, rounds):
            round_number, match_number, slot = advancement.next_position(match.round_number, match.match_number)
            next_match = index[(round_number, match_number)]
            if match.status == MatchStatus.COMPLETED.value:
                advancement.retract_winner(next_match, slot, match.winner_id)
                _clear_slot(db, next_match, slot, match.winner_id)
                changed_ids.append(next_match.id)
            elif next_match.is_terminal:
                raise InvalidState(
                    f"Match R{next_match.round_number}M{next_match.match_number} is already "
                    f"{next_match.status}; restore it first",
                    step=step,
                )
        elif tournament.status == TournamentStatus.COMPLETED.value:
            step = "reopen_tournament"
            tournament_service.transition_status(db, tournament, TournamentStatus.ONGOING, step=step)
            reopened = True

        step = "restore_match"
        _set_match_status(db, row.id, MatchStatus.SCHEDULED, {
            Match.winner_id: None,
            Match.score_player1: None,
            Match.score_player2: None,
            Match.started_at: None,
            Match.completed_at: None,
            Match.is_bye: False,
        }, step=step)
        match.status = MatchStatus.SCHEDULED.value
        match.winner_id = None

        step = "update_bracket"
        _sync_current_round(db, tournament.id, matches)

        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not restore match at {step}: {exc}", step=step) from exc
    except CueClubError:
        db.rollback()
        raise

    db.refresh(row)
    logger.info("Match R%dM%d of tournament %s restored", row.round_number, row.match_number, row.tournament_id)
    table_events.publish("tournament_matches", changed_ids)
    if reopened:
        table_events.publish("tournaments", [tournament.id])
    return row


def is_round_complete(db: Session, tournament_id: str, round_number: int) -> bool:
    tournament_service.get_tournament_or_404(db, tournament_id)
    return advancement.is_round_complete(bracket_service.load_match_models(db, tournament_id), round_number)


def round_status(db: Session, tournament_id: str, round_number: int) -> dict:
    tournament_service.get_tournament_or_404(db, tournament_id)
    round_matches = [m for m in bracket_service.load_match_models(db, tournament_id) if m.round_number == round_number]
    if not round_matches:
        raise NotFound(f"Round {round_number} not found", step="round_status")
    completed = sum(1 for m in round_matches if m.is_terminal)
    return {
        "tournament_id": tournament_id,
        "round_number": round_number,
        "total_matches": len(round_matches),
        "completed_matches": completed,
        "is_complete": completed == len(round_matches),
    }


def reset_tournament(db: Session, tournament_id: str) -> List[MatchModel]:
    """
    Rebuilds every match to its freshly generated state from the stored
    seeding, writing from the last round down to round 1.
    """
    tournament = tournament_service.get_tournament_or_404(db, tournament_id)
    if tournament.status not in (TournamentStatus.ONGOING.value, TournamentStatus.COMPLETED.value):
        raise InvalidState(
            f"Cannot reset a tournament in status '{tournament.status}'",
            step="check_status",
        )
    bracket = db.query(Bracket).filter(Bracket.tournament_id == tournament_id).first()
    if not bracket:
        raise NotFound("Tournament has no bracket to reset", step="load_bracket")

    seeds = bracket_service.load_seed_models(db, tournament_id)
    rebuilt = advancement.reset_matches(bracket_service.load_match_models(db, tournament_id), seeds)
    rows = {row.id: row for row in db.query(Match).filter(Match.tournament_id == tournament_id).all()}

    step = "reset_matches"
    try:
        now = utcnow()
        last_round = None
        for match in rebuilt:
            if last_round is not None and match.round_number != last_round:
                db.flush()
            last_round = match.round_number
            row = rows[match.id]
            row.player1_id = match.player1_id
            row.player2_id = match.player2_id
            row.winner_id = match.winner_id
            row.score_player1 = None
            row.score_player2 = None
            row.status = match.status
            row.is_bye = match.is_bye
            row.started_at = None
            row.completed_at = now if match.status == MatchStatus.COMPLETED.value else None
        db.flush()

        step = "update_bracket"
        bracket.current_round = 1
        if tournament.status == TournamentStatus.COMPLETED.value:
            step = "reopen_tournament"
            tournament_service.transition_status(db, tournament, TournamentStatus.ONGOING, step=step)
        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Reset failed at {step}: {exc}", step=step) from exc
    except InvalidState:
        db.rollback()
        raise

    logger.info("Reset bracket of tournament %s", tournament_id)
    table_events.publish("tournament_matches", list(rows))
    return sorted(rebuilt, key=lambda m: (m.round_number, m.match_number))
