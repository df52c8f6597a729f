"""REST facade over a ledger-hosted auction contract with automated demo bidding."""
