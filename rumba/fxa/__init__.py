"""Account subscription levels and account service errors."""