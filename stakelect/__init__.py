"""Stakelect - vote accounting and validator election for delegated stake.

Accounts holding locked stake delegate it as votes to validator groups, and
once per epoch a proportional election seats validators from the groups with
the most votes. The library consists of the following parts:

-   The ``ledger`` module keeps the votes: pending votes that season for an
    epoch, active votes held as units of a group's pool so that epoch rewards
    reach all voters without visiting each of them, and the ranking of
    eligible groups by their total votes.
-   The ``sortedindex`` module provides that ranking, a sorted linked
    structure updated in constant time using caller-supplied hints.
-   The ``election`` module distributes seats among the top groups by
    a highest-averages method limited by the groups' sizes and selects the
    elected validators.

The ledger does not custody stake, register groups or count epochs; it uses
the interfaces from the ``collaborator`` module for that, which also hosts
simple in-memory implementations of them.
"""
