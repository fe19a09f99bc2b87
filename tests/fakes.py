"""
In-memory stand-in for SqlMarketplaceStore.

Rows are plain dicts. Writes go to a working copy; commit() saves it,
rollback() restores the last saved state, so transactional behaviour can be
checked without a database.
"""
import copy


class StoreUnavailable(ConnectionError):
    pass


class FakeMarketplaceStore:
    def __init__(self, transactions=(), listings=(), insights=(), fail_on=()):
        self.transactions = [dict(t) for t in transactions]
        self.listings = [dict(l) for l in listings]
        self.insights = [dict(i) for i in insights]
        self.metrics = []
        self.fail_on = set(fail_on)
        self.commits = 0
        self.rollbacks = 0
        self._saved = copy.deepcopy((self.insights, self.metrics))

    def _check(self, operation):
        if operation in self.fail_on:
            raise StoreUnavailable(f"{operation} failed")

    # reads

    def completed_amounts(self, since, category=None):
        self._check("read")
        return [
            t["amount"] for t in self.transactions
            if t["status"] == "COMPLETED"
            and t["completed_at"] is not None
            and t["completed_at"] >= since
            and (category is None or t["category"] == category)
        ]

    def count_active_sellers(self, since):
        self._check("read")
        return len({l["user_id"] for l in self.listings if l["created_at"] >= since})

    def count_active_listings(self, category=None):
        self._check("read")
        return len([
            l for l in self.listings
            if l["status"] == "ACTIVE" and (category is None or l["category"] == category)
        ])

    def active_category_groups(self):
        self._check("read")
        groups = {}
        for listing in self.listings:
            if listing["status"] == "ACTIVE":
                groups.setdefault(listing["category"], []).append(listing["price"])
        return [
            (category, len(prices), sum(prices) / len(prices))
            for category, prices in sorted(groups.items())
        ]

    def view_count(self, category=None):
        self._check("read")
        return sum(
            l["views"] for l in self.listings
            if category is None or l["category"] == category
        )

    # writes

    def deactivate_insights(self):
        self._check("deactivate_insights")
        retired = 0
        for insight in self.insights:
            if insight["is_active"]:
                insight["is_active"] = False
                retired += 1
        return retired

    def add_insights(self, insights):
        self._check("add_insights")
        self.insights.extend(dict(data, is_active=True) for data in insights)

    def add_metric(self, **fields):
        self._check("add_metric")
        self.metrics.append(fields)

    def commit(self):
        self.commits += 1
        self._saved = copy.deepcopy((self.insights, self.metrics))

    def rollback(self):
        self.rollbacks += 1
        self.insights, self.metrics = copy.deepcopy(self._saved)

    @property
    def active_insights(self):
        return [i for i in self.insights if i["is_active"]]
