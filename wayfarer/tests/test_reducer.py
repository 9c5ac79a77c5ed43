"""
Tests for the reducer.

Tests:
- Each action type's preconditions, costs and effects
- RNG failures consume full time
- Failed preconditions change nothing
- Session exhaustion
"""

from ..engine_core.action import (
    AcceptContract, Appraise, Craft, Drop, Enrol, Explore, FailureType, Fight,
    Gather, Move, Store, Survey, TurnInCombatToken,
)
from ..engine_core.checks import find_path, path_cost
from ..engine_core.reducer import execute_action
from ..engine_core.state import (
    COMBAT_GUILD_TOKEN, CRUDE_WEAPON, IMPROVED_WEAPON, LootEntry, Skill,
    TOWN_AREA_ID, connection_key,
)
from ..world.generator import ensure_area
from ..world.visibility import (
    VisibilityTier, discover_area, discover_connection, discover_location,
    get_visibility_tier,
)
from .helpers import (
    FIRST_RING_AREA, fill_inventory, give, place_node, reveal_route_from_town,
    set_skill, stand_at_node, total_xp_by_skill, travel_to_first_ring,
)


class TestMove:
    """Tests for Move."""

    def test_move_between_town_sites(self, world):
        log = execute_action(world, Move("MINE"))

        assert log.success
        assert log.time_consumed == 2
        assert log.skill_gained is None
        assert world.current_location_id == "MINE"
        assert world.time.current_tick == 2
        assert world.time.session_remaining_ticks == 198

    def test_already_there(self, world):
        log = execute_action(world, Move("TOWN"))
        assert not log.success
        assert log.failure_type == FailureType.ALREADY_AT_DESTINATION
        assert log.time_consumed == 0

    def test_unknown_destination(self, world):
        log = execute_action(world, Move("atlantis"))
        assert log.failure_type == FailureType.UNKNOWN_DESTINATION

    def test_area_must_be_known(self, world):
        """First-ring areas exist from the start but are not yet known."""
        log = execute_action(world, Move(FIRST_RING_AREA))
        assert log.failure_type == FailureType.AREA_NOT_KNOWN

    def test_known_area_without_known_road(self, world):
        discover_area(world, FIRST_RING_AREA)
        log = execute_action(world, Move(FIRST_RING_AREA))
        assert log.failure_type == FailureType.NO_PATH_TO_DESTINATION

    def test_travel_to_first_ring(self, world):
        """Road travel costs base time times the connection multiplier."""
        reveal_route_from_town(world)
        connection = world.exploration.connections[connection_key(TOWN_AREA_ID, FIRST_RING_AREA)]

        log = execute_action(world, Move(FIRST_RING_AREA))

        assert log.success
        assert log.time_consumed == 10 * connection.travel_multiplier
        assert world.current_area_id == FIRST_RING_AREA
        assert world.current_location_id is None
        assert FIRST_RING_AREA in world.exploration.linked_area_ids

    def test_back_to_a_site_from_the_wilds(self, world):
        """Returning to MINE costs the road home plus TOWN to MINE."""
        travel_to_first_ring(world)
        road = path_cost(world, find_path(world, FIRST_RING_AREA, TOWN_AREA_ID))

        log = execute_action(world, Move("MINE"))

        assert log.time_consumed == road + 2
        assert world.current_area_id == TOWN_AREA_ID
        assert world.current_location_id == "MINE"

    def test_location_must_be_discovered(self, world):
        travel_to_first_ring(world)
        node = place_node(world, FIRST_RING_AREA)

        log = execute_action(world, Move(node.location_id))
        assert log.failure_type == FailureType.LOCATION_NOT_DISCOVERED

        discover_location(world, node.location_id)
        log = execute_action(world, Move(node.location_id))
        assert log.success
        assert log.time_consumed == 1

    def test_location_in_another_area(self, world):
        node = place_node(world, FIRST_RING_AREA)
        discover_location(world, node.location_id)
        log = execute_action(world, Move(node.location_id))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_failure_changes_nothing(self, world):
        """A failed precondition costs no time and draws nothing."""
        before = world.clone()
        execute_action(world, Move("atlantis"))
        assert world == before


class TestGather:
    """Tests for Gather on starter and procedural nodes."""

    def test_gather_success(self, miner_world):
        miner_world.world.resource_nodes["iron-node"].success_probability = 1.0
        execute_action(miner_world, Move("MINE"))

        log = execute_action(miner_world, Gather("iron-node"))

        assert log.success
        assert log.time_consumed == 2
        assert log.skill_gained.skill == Skill.MINING
        assert log.skill_gained.amount == 1
        assert [roll.label for roll in log.rng_rolls] == ["gather:iron-node"]
        assert miner_world.player.item_count("IRON_ORE") == 1

    def test_gather_failure_consumes_full_time(self, miner_world):
        miner_world.world.resource_nodes["iron-node"].success_probability = 0.0
        execute_action(miner_world, Move("MINE"))
        xp_before = total_xp_by_skill(miner_world)

        log = execute_action(miner_world, Gather("iron-node"))

        assert not log.success
        assert log.failure_type == FailureType.GATHER_FAILURE
        assert log.time_consumed == 2
        assert len(log.rng_rolls) == 1
        assert miner_world.player.item_count("IRON_ORE") == 0
        assert total_xp_by_skill(miner_world) == xp_before
        assert miner_world.current_location_id == "MINE"

    def test_gather_needs_skill(self, world):
        execute_action(world, Move("MINE"))
        log = execute_action(world, Gather("iron-node"))
        assert log.failure_type == FailureType.INSUFFICIENT_SKILL

    def test_gather_wrong_location(self, miner_world):
        log = execute_action(miner_world, Gather("iron-node"))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_gather_inventory_full(self, miner_world):
        execute_action(miner_world, Move("MINE"))
        fill_inventory(miner_world)
        log = execute_action(miner_world, Gather("iron-node"))
        assert log.failure_type == FailureType.INVENTORY_FULL

    def test_unknown_node(self, miner_world):
        log = execute_action(miner_world, Gather("gold-node"))
        assert log.failure_type == FailureType.NODE_NOT_FOUND

    def test_procedural_gather_takes_best_workable_tier(self, world):
        set_skill(world, Skill.MINING, 3)
        node = stand_at_node(world, required_levels=(1, 3, 5))

        log = execute_action(world, Gather(node.node_id))

        assert log.success
        assert world.player.item_count("ORE_T2") == 1
        assert node.get_material("ORE_T2").remaining_units == 2

    def test_procedural_material_choice(self, world):
        set_skill(world, Skill.MINING, 3)
        node = stand_at_node(world, required_levels=(1, 3, 5))

        assert execute_action(world, Gather(node.node_id, "ORE_T1")).success
        assert world.player.item_count("ORE_T1") == 1

        log = execute_action(world, Gather(node.node_id, "ORE_T3"))
        assert log.failure_type == FailureType.INSUFFICIENT_SKILL

        log = execute_action(world, Gather(node.node_id, "GOLD"))
        assert log.failure_type == FailureType.MATERIAL_NOT_FOUND

    def test_node_depletes(self, world):
        """Reserves never replenish."""
        set_skill(world, Skill.MINING, 1)
        node = stand_at_node(world, required_levels=(1,), units=1)

        assert execute_action(world, Gather(node.node_id)).success
        assert node.depleted

        log = execute_action(world, Gather(node.node_id))
        assert log.failure_type == FailureType.NODE_DEPLETED

    def test_undiscovered_node(self, world):
        set_skill(world, Skill.MINING, 1)
        travel_to_first_ring(world)
        node = place_node(world, FIRST_RING_AREA)
        log = execute_action(world, Gather(node.node_id))
        assert log.failure_type == FailureType.LOCATION_NOT_DISCOVERED


class TestFight:
    """Tests for Fight."""

    def test_fight_win_with_loot(self, fighter_world):
        fighter_world.world.enemies["cave-rat"].loot_table = [LootEntry("IRON_ORE", 1, 89)]

        log = execute_action(fighter_world, Fight("cave-rat"))

        assert log.success
        assert log.time_consumed == 3
        assert log.skill_gained.skill == Skill.COMBAT
        assert [roll.label for roll in log.rng_rolls] == ["fight:cave-rat", "loot:cave-rat:IRON_ORE"]
        assert fighter_world.player.item_count("IRON_ORE") == 1

    def test_improved_weapon_replaces_crude(self, fighter_world):
        fighter_world.world.enemies["cave-rat"].loot_table = [
            LootEntry(IMPROVED_WEAPON, 1, 10, replaces_item=CRUDE_WEAPON, auto_equip=True),
        ]

        assert execute_action(fighter_world, Fight("cave-rat")).success

        player = fighter_world.player
        assert player.item_count(CRUDE_WEAPON) == 0
        assert player.item_count(IMPROVED_WEAPON) == 1
        assert player.equipped_weapon == IMPROVED_WEAPON

    def test_fight_loss_consumes_full_time(self, fighter_world):
        fighter_world.world.weapons[CRUDE_WEAPON].success_probability = 0.0

        log = execute_action(fighter_world, Fight("cave-rat"))

        assert not log.success
        assert log.failure_type == FailureType.COMBAT_FAILURE
        assert log.time_consumed == 3
        assert len(log.rng_rolls) == 1
        assert fighter_world.player.item_count("IRON_ORE") == 0

    def test_fight_needs_weapon(self, fighter_world):
        fighter_world.player.equipped_weapon = None
        log = execute_action(fighter_world, Fight("cave-rat"))
        assert log.failure_type == FailureType.MISSING_WEAPON

    def test_fight_needs_combat_level(self, fighter_world):
        set_skill(fighter_world, Skill.COMBAT, 0)
        log = execute_action(fighter_world, Fight("cave-rat"))
        assert log.failure_type == FailureType.INSUFFICIENT_SKILL

    def test_fight_wrong_location(self, fighter_world):
        fighter_world.exploration.player.current_location_id = "FOREST"
        log = execute_action(fighter_world, Fight("cave-rat"))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_fight_needs_room_for_any_loot(self, fighter_world):
        fill_inventory(fighter_world)
        log = execute_action(fighter_world, Fight("cave-rat"))
        assert log.failure_type == FailureType.INVENTORY_FULL

    def test_unknown_enemy(self, fighter_world):
        log = execute_action(fighter_world, Fight("dragon"))
        assert log.failure_type == FailureType.ENEMY_NOT_FOUND


class TestCraftStoreDrop:
    """Tests for Craft, Store and Drop."""

    def test_craft(self, smith_world):
        log = execute_action(smith_world, Craft("iron-bar-recipe"))

        assert log.success
        assert log.time_consumed == 3
        assert log.skill_gained.skill == Skill.SMITHING
        assert smith_world.player.item_count("IRON_BAR") == 1
        assert smith_world.player.item_count("IRON_ORE") == 2

    def test_craft_missing_inputs(self, world):
        set_skill(world, Skill.SMITHING, 1)
        give(world, "IRON_ORE", 1)
        log = execute_action(world, Craft("iron-bar-recipe"))
        assert log.failure_type == FailureType.MISSING_ITEMS

    def test_craft_wrong_location(self, smith_world):
        execute_action(smith_world, Move("MINE"))
        log = execute_action(smith_world, Craft("iron-bar-recipe"))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_craft_unknown_recipe(self, smith_world):
        log = execute_action(smith_world, Craft("gold-bar-recipe"))
        assert log.failure_type == FailureType.RECIPE_NOT_FOUND

    def test_store(self, smith_world):
        log = execute_action(smith_world, Store("IRON_ORE", 3))

        assert log.success
        assert log.time_consumed == 0
        assert log.skill_gained.skill == Skill.LOGISTICS
        assert smith_world.player.item_count("IRON_ORE") == 1
        assert smith_world.player.storage[0].quantity == 3

    def test_store_rejects_bad_quantity(self, smith_world):
        assert execute_action(smith_world, Store("IRON_ORE", 0)).failure_type == FailureType.INVALID_QUANTITY
        assert execute_action(smith_world, Store("IRON_ORE", 9)).failure_type == FailureType.MISSING_ITEMS

    def test_store_away_from_storage(self, smith_world):
        execute_action(smith_world, Move("MINE"))
        log = execute_action(smith_world, Store("IRON_ORE", 1))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_storing_weapon_unequips_it(self, fighter_world):
        execute_action(fighter_world, Move("TOWN"))
        assert execute_action(fighter_world, Store(CRUDE_WEAPON, 1)).success
        assert fighter_world.player.equipped_weapon is None

    def test_drop(self, smith_world):
        log = execute_action(smith_world, Drop("IRON_ORE", 4))

        assert log.success
        assert log.time_consumed == 1
        assert log.skill_gained is None
        assert smith_world.player.inventory == []


class TestGuild:
    """Tests for AcceptContract, Enrol and TurnInCombatToken."""

    def test_accept_contract(self, world):
        log = execute_action(world, AcceptContract("miners-guild-1"))

        assert log.success
        assert log.time_consumed == 0
        assert world.player.active_contracts == ["miners-guild-1"]

        log = execute_action(world, AcceptContract("miners-guild-1"))
        assert log.failure_type == FailureType.ALREADY_HAS_CONTRACT

    def test_accept_unknown_contract(self, world):
        log = execute_action(world, AcceptContract("thieves-guild-1"))
        assert log.failure_type == FailureType.CONTRACT_NOT_FOUND

    def test_accept_away_from_guild(self, world):
        execute_action(world, Move("FOREST"))
        log = execute_action(world, AcceptContract("miners-guild-1"))
        assert log.failure_type == FailureType.WRONG_LOCATION

    def test_enrol(self, world):
        log = execute_action(world, Enrol(Skill.MINING))

        assert log.success
        assert log.time_consumed == 3
        assert log.skill_gained is None
        assert world.player.skill_level(Skill.MINING) == 1

        log = execute_action(world, Enrol(Skill.MINING))
        assert log.failure_type == FailureType.ALREADY_ENROLLED

    def test_enrol_leaves_total_xp_unchanged(self, world):
        """Reaching level 1 by enrolment is the baseline, not earned XP."""
        xp_before = total_xp_by_skill(world)

        execute_action(world, Enrol(Skill.MINING))

        assert world.player.skill_level(Skill.MINING) == 1
        assert total_xp_by_skill(world) == xp_before

    def test_logistics_needs_no_enrolment(self, world):
        assert world.player.skill_level(Skill.LOGISTICS) == 1
        log = execute_action(world, Enrol(Skill.LOGISTICS))
        assert log.failure_type == FailureType.ALREADY_ENROLLED

    def test_enrol_combat_grants_weapon(self, world):
        assert execute_action(world, Enrol(Skill.COMBAT)).success
        assert world.player.item_count(CRUDE_WEAPON) == 1
        assert world.player.equipped_weapon == CRUDE_WEAPON

    def test_enrol_exploration_reveals_a_road(self, world):
        """One first-ring area and its road become known, drawn without a logged roll."""
        counter = world.rng.counter

        log = execute_action(world, Enrol(Skill.EXPLORATION))

        known = world.exploration.player
        revealed = known.known_area_ids - {TOWN_AREA_ID}
        assert len(revealed) == 1
        area_id = revealed.pop()
        assert area_id.startswith("area-d1-")
        assert known.known_connection_ids == {connection_key(TOWN_AREA_ID, area_id)}
        assert world.rng.counter == counter + 1
        assert log.rng_rolls == ()

    def test_turn_in_token(self, world):
        give(world, COMBAT_GUILD_TOKEN)

        log = execute_action(world, TurnInCombatToken())

        assert log.success
        assert log.time_consumed == 0
        assert world.player.item_count(COMBAT_GUILD_TOKEN) == 0
        assert "combat-guild-1" in world.world.contracts

    def test_turn_in_without_token(self, world):
        log = execute_action(world, TurnInCombatToken())
        assert log.failure_type == FailureType.MISSING_ITEMS


class TestAppraise:
    """Tests for Appraise."""

    def test_appraise(self, world):
        set_skill(world, Skill.MINING, 1)
        node = stand_at_node(world)

        log = execute_action(world, Appraise(node.node_id))

        assert log.success
        assert log.time_consumed == 1
        assert log.skill_gained is None
        assert get_visibility_tier(world, node) == VisibilityTier.FULL

    def test_appraise_needs_skill(self, world):
        node = stand_at_node(world)
        log = execute_action(world, Appraise(node.node_id))
        assert log.failure_type == FailureType.INSUFFICIENT_SKILL


class TestExploreSurvey:
    """Tests for Explore and Survey."""

    def test_explore_finds_a_road(self, explorer_world):
        log = execute_action(explorer_world, Explore())

        assert log.success
        assert log.time_consumed == 1
        assert log.skill_gained.skill == Skill.EXPLORATION
        found = log.exploration.discovered_connection_id
        assert found in explorer_world.exploration.player.known_connection_ids
        assert log.exploration.luck_delta == 1
        assert log.rng_rolls[0].label == "explore"
        assert len(log.rng_rolls) == 1 + 5

    def test_explore_finds_a_location(self, world):
        """With every road known only the planted vein remains."""
        set_skill(world, Skill.EXPLORATION, 30)
        for i in range(5):
            discover_connection(world, connection_key(TOWN_AREA_ID, f"area-d1-i{i}"))
        node = place_node(world, TOWN_AREA_ID)

        log = execute_action(world, Explore())

        assert log.success
        assert log.exploration.discovered_location_id == node.location_id
        assert node.location_id in world.exploration.player.known_location_ids

    def test_unskilled_explore_grants_no_xp(self, world):
        world.time.session_remaining_ticks = 20
        xp_before = total_xp_by_skill(world)

        execute_action(world, Explore())

        assert total_xp_by_skill(world) == xp_before

    def test_explore_runs_out_of_session(self, world):
        """Zero chance rolls until the clock runs out."""
        set_skill(world, Skill.EXPLORATION, 1)
        ensure_area(world, 3, 0)
        place_node(world, "area-d3-i0")
        world.exploration.player.current_area_id = "area-d3-i0"
        world.exploration.player.current_location_id = None
        world.time.session_remaining_ticks = 10

        log = execute_action(world, Explore())

        assert not log.success
        assert log.failure_type == FailureType.SESSION_ENDED
        assert log.time_consumed == 10
        assert world.time.session_remaining_ticks == 0
        assert len(log.rng_rolls) == 5
        assert log.to_dict()["exploration"]["expected_ticks"] is None

    def test_nothing_left_to_explore(self, world):
        for i in range(5):
            discover_connection(world, connection_key(TOWN_AREA_ID, f"area-d1-i{i}"))
        log = execute_action(world, Explore())
        assert log.failure_type == FailureType.AREA_FULLY_EXPLORED
        assert log.time_consumed == 0

    def test_survey_finds_an_area(self, explorer_world):
        log = execute_action(explorer_world, Survey())

        assert log.success
        area_id = log.exploration.discovered_area_id
        known = explorer_world.exploration.player
        assert area_id in known.known_area_ids
        assert connection_key(TOWN_AREA_ID, area_id) in known.known_connection_ids

    def test_survey_with_every_neighbour_known(self, world):
        for i in range(5):
            discover_area(world, f"area-d1-i{i}")
        log = execute_action(world, Survey())
        assert log.failure_type == FailureType.NO_UNDISCOVERED_AREAS


class TestSessionClock:
    """Tests for the session clock."""

    def test_zero_cost_action_after_session(self, world):
        world.time.session_remaining_ticks = 0
        log = execute_action(world, AcceptContract("miners-guild-1"))
        assert log.failure_type == FailureType.SESSION_ENDED
        assert world.player.active_contracts == []

    def test_action_longer_than_remaining(self, miner_world):
        execute_action(miner_world, Move("MINE"))
        miner_world.time.session_remaining_ticks = 1
        counter = miner_world.rng.counter

        log = execute_action(miner_world, Gather("iron-node"))

        assert log.failure_type == FailureType.SESSION_ENDED
        assert log.time_consumed == 0
        assert miner_world.rng.counter == counter
