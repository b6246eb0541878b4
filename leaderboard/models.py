from leaderboard import db


class PlayerScore(db.Model):
    __tablename__ = 'scores'
    token = db.Column(db.Text, primary_key=True)
    name = db.Column(db.Text, nullable=True)
    best_score = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        db.Index('ix_scores_rank', best_score.desc(), updated_at.asc()),
    )

    def to_dict(self):
        # updated_at only breaks ties, clients never see it
        return {
            'token': self.token,
            'name': self.name,
            'best_score': self.best_score,
        }
