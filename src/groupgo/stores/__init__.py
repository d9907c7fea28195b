"""
Data-access stores for GroupGo.

Each store is constructed once by groupgo.app.build_app() and shared.
Operations return a Result; live views return a LiveQuery the caller closes.
"""

from groupgo.stores.invitations import InvitationStore
from groupgo.stores.profiles import ProfileStore
from groupgo.stores.trips import TripStore, TripUnion, merge_trips
from groupgo.stores.users import UserDirectory

__all__ = ["InvitationStore", "ProfileStore", "TripStore", "TripUnion", "UserDirectory", "merge_trips"]
